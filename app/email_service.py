"""
Reservation Email Service using Resend
Provides confirmation and status emails using MJML templates for responsive design
"""

import io
import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from . import config
from .email_templates import booking_confirmation_template, reservation_status_template
from .models import Reservation, Slot
from .utils.dates import ensure_utc, format_date, to_local
from .utils.sanitization import sanitize_dict

logger = logging.getLogger(__name__)

# Initialize Resend
resend.api_key = config.RESEND_API_KEY

EMAIL_NOT_CONFIGURED = "Email service not configured"


def is_email_configured() -> bool:
    return bool(config.RESEND_API_KEY)


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(io.StringIO(mjml_content))
        # mjml_to_html returns a dict-like result with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Returns:
        {"success": True, "id": ...} or {"success": False, "error": ...}; never raises
    """
    if not is_email_configured():
        logger.warning("⚠️ Email not sent - RESEND_API_KEY missing")
        return {"success": False, "error": EMAIL_NOT_CONFIGURED}

    recipients = [to] if isinstance(to, str) else to

    try:
        html_content = compile_mjml_to_html(mjml_content)

        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or config.EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return {"success": True, "id": response.get("id") if isinstance(response, dict) else None}
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        return {"success": False, "error": str(e)}


# ============================================
# Template parameters
# ============================================


def _booking_schedule(slot: Optional[Slot]) -> dict[str, str]:
    if slot is None:
        return {"booking_date": "N/A", "booking_time": "N/A", "booking_duration": "N/A"}

    start = ensure_utc(slot.start_time)
    end = ensure_utc(slot.end_time)
    minutes = int((end - start).total_seconds() // 60)
    return {
        "booking_date": format_date(start),
        "booking_time": f"{to_local(start):%H:%M}",
        "booking_duration": f"{minutes} minutes",
    }


def build_confirmation_params(reservation: Reservation, slot: Optional[Slot]) -> dict[str, str]:
    return {
        "to_name": reservation.user_name or "Valued Customer",
        "to_email": reservation.user_email,
        "booking_reference": reservation.reference,
        **_booking_schedule(slot),
        "group_id": reservation.group_id or "Not specified",
        "notes": reservation.notes or "No notes provided",
    }


def build_cancellation_params(
    reservation: Reservation, slot: Optional[Slot], reason: Optional[str] = None
) -> dict[str, str]:
    status_reason = reason or "No reason provided"
    return {
        **build_confirmation_params(reservation, slot),
        "reason": status_reason,
        "status": "Cancelled",
        "status_reason": status_reason,
    }


def build_status_update_params(
    reservation: Reservation, slot: Optional[Slot], status: str, reason: Optional[str] = None
) -> dict[str, str]:
    schedule = _booking_schedule(slot)
    status_reason = reason or "No reason provided"
    return {
        "to_name": reservation.user_name or "Valued Customer",
        "to_email": reservation.user_email,
        "booking_reference": reservation.reference or "N/A",
        "booking_date": schedule["booking_date"],
        "booking_time": schedule["booking_time"],
        "reason": status_reason,
        "status": status.capitalize(),
        "status_reason": status_reason,
        "group_id": reservation.group_id or "N/A",
    }


# ============================================
# Reservation emails
# Called from BackgroundTasks with prebuilt params
# ============================================


async def send_booking_confirmation_email(params: dict) -> dict:
    """Send the reservation confirmation"""
    safe = sanitize_dict(params)
    result = await send_email(
        to=params["to_email"],
        subject=config.EMAIL_CONFIRMATION_SUBJECT,
        mjml_content=booking_confirmation_template(safe),
    )
    if not result["success"]:
        logger.warning(f"⚠️ Confirmation email for {params['booking_reference']} failed: {result['error']}")
    return result


async def send_cancellation_email(params: dict) -> dict:
    """Send the cancellation notice"""
    safe = sanitize_dict(params)
    result = await send_email(
        to=params["to_email"],
        subject=config.EMAIL_STATUS_SUBJECT,
        mjml_content=reservation_status_template(safe),
    )
    if not result["success"]:
        logger.warning(f"⚠️ Cancellation email for {params['booking_reference']} failed: {result['error']}")
    return result


async def send_status_update_email(params: dict) -> dict:
    safe = sanitize_dict(params)
    result = await send_email(
        to=params["to_email"],
        subject=config.EMAIL_STATUS_SUBJECT,
        mjml_content=reservation_status_template(safe),
    )
    if not result["success"]:
        logger.warning(f"⚠️ Status email for {params['booking_reference']} failed: {result['error']}")
    return result
