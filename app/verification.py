"""
Human verification challenges
Simple arithmetic or shape questions used as an anti-bot gate before booking.
Challenges are handed to clients as signed tokens carrying only a digest of
the expected answer.
"""

import hashlib
import hmac
import logging
import random
import time
from typing import Any, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from .config import CHALLENGE_MAX_AGE_SECONDS, SECRET_KEY

logger = logging.getLogger(__name__)

CHALLENGE_SALT = "human-verification"

MSG_EXPIRED = "Verification expired. Please try again."
MSG_INCORRECT = "Incorrect answer. Please try again."
MSG_INVALID = "Invalid challenge or answer"

IMAGE_CHALLENGES = [
    {"question": "Select the number of circles in this image: ○○○", "answer": "3"},
    {"question": "Select the number of squares in this image: □□", "answer": "2"},
    {"question": "Select the number of triangles in this image: △△△△", "answer": "4"},
    {"question": "What shape is this? ○", "answer": "circle"},
    {"question": "What shape is this? □", "answer": "square"},
    {"question": "What shape is this? △", "answer": "triangle"},
]

_rng = random.SystemRandom()


def generate_math_challenge() -> dict[str, Any]:
    num1 = _rng.randint(1, 10)
    num2 = _rng.randint(1, 10)
    return {
        "kind": "math",
        "question": f"What is {num1} + {num2}?",
        "answer": str(num1 + num2),
        "timestamp": time.time(),
    }


def generate_image_challenge() -> dict[str, Any]:
    challenge = _rng.choice(IMAGE_CHALLENGES)
    return {"kind": "image", **challenge, "timestamp": time.time()}


def get_random_challenge() -> dict[str, Any]:
    return generate_math_challenge() if _rng.random() > 0.5 else generate_image_challenge()


def normalize_answer(answer: str) -> str:
    return answer.strip().lower()


def verify_challenge(
    challenge: Optional[dict[str, Any]], user_answer: Optional[str], now: Optional[float] = None
) -> dict[str, Any]:
    """Check an answer against an unsigned challenge dict (math: exact, image: case-insensitive)"""
    if not challenge or not user_answer:
        return {"success": False, "error": MSG_INVALID}

    now = time.time() if now is None else now
    if now - challenge["timestamp"] > CHALLENGE_MAX_AGE_SECONDS:
        return {"success": False, "error": MSG_EXPIRED}

    expected = challenge["answer"]
    if challenge.get("kind") == "math":
        correct = user_answer.strip() == expected
    else:
        correct = normalize_answer(user_answer) == expected.lower()

    if correct:
        return {"success": True}
    return {"success": False, "error": MSG_INCORRECT}


# ============================================================================
# SIGNED CHALLENGE TOKENS
# ============================================================================


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(SECRET_KEY)


def _answer_digest(answer: str) -> str:
    return hmac.new(SECRET_KEY.encode(), normalize_answer(answer).encode(), hashlib.sha256).hexdigest()


def issue_challenge(challenge: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """Return the public view of a challenge plus its signed token"""
    challenge = challenge or get_random_challenge()
    token = _serializer().dumps(
        {"kind": challenge["kind"], "question": challenge["question"], "digest": _answer_digest(challenge["answer"])},
        salt=CHALLENGE_SALT,
    )
    return {
        "kind": challenge["kind"],
        "question": challenge["question"],
        "token": token,
        "expires_in": CHALLENGE_MAX_AGE_SECONDS,
    }


def verify_challenge_token(token: Optional[str], user_answer: Optional[str]) -> dict[str, Any]:
    if not token or not user_answer:
        return {"success": False, "error": MSG_INVALID}

    try:
        data = _serializer().loads(token, salt=CHALLENGE_SALT, max_age=CHALLENGE_MAX_AGE_SECONDS)
    except SignatureExpired:
        logger.info("⏰ Verification challenge expired")
        return {"success": False, "error": MSG_EXPIRED}
    except BadSignature:
        logger.warning("⚠️ Verification challenge with invalid signature")
        return {"success": False, "error": MSG_INVALID}

    if hmac.compare_digest(data.get("digest", ""), _answer_digest(user_answer)):
        return {"success": True}
    return {"success": False, "error": MSG_INCORRECT}
