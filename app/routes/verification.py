"""
Human verification routes
Issues signed challenges and checks answers without the answer ever leaving the server
"""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from ..verification import issue_challenge, verify_challenge_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verification", tags=["verification"])


class ChallengeResponse(BaseModel):
    kind: str
    question: str
    token: str
    expires_in: int


class VerifyChallengeRequest(BaseModel):
    token: Optional[str] = None
    answer: Optional[str] = None


class VerifyChallengeResponse(BaseModel):
    success: bool
    error: Optional[str] = None


@router.get("/challenge", response_model=ChallengeResponse)
async def get_challenge():
    """New random math or shape challenge"""
    return issue_challenge()


@router.post("/verify", response_model=VerifyChallengeResponse)
async def verify_challenge(data: VerifyChallengeRequest):
    """Check an answer early, before the booking form is submitted"""
    return verify_challenge_token(data.token, data.answer)
