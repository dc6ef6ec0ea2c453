"""
MJML Email Templates
Reservation emails using MJML for responsive, cross-client compatibility
"""

from typing import Optional

from .config import FRONTEND_URL, ORGANIZATION_NAME

# Emerald/Slate color scheme, matching the booking calendar
THEME = {
    "primary": "#10B981",
    "primary_dark": "#059669",
    "primary_light": "#d1fae5",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "danger": "#ef4444",
}

STATUS_COLORS = {
    "Confirmed": THEME["primary"],
    "Pending": "#f59e0b",
    "Cancelled": THEME["danger"],
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header -->
        <mj-section background-color="#ffffff" padding="32px 20px 16px 20px">
          <mj-column>
            <mj-text font-size="20px" font-weight="700" color="{THEME['primary_dark']}" align="center" padding="0">
              {ORGANIZATION_NAME}
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 24px 40px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 24px 0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              You're receiving this because you reserved a session with {ORGANIZATION_NAME}.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def booking_details_table(rows: list[tuple[str, str]]) -> str:
    """Two-column label/value table used by every reservation email"""
    body = "".join(
        f"""
        <tr>
          <td style="padding: 8px 0; color: {THEME['text_muted']}; width: 40%;">{label}</td>
          <td style="padding: 8px 0; color: {THEME['text_primary']}; font-weight: 600;">{value}</td>
        </tr>"""
        for label, value in rows
    )
    return f"""
    <mj-table font-size="15px" padding="16px 0" border="none">
      {body}
    </mj-table>
    """


def booking_confirmation_template(params: dict) -> str:
    """Reservation confirmation MJML template"""
    details = booking_details_table(
        [
            ("Date", params["booking_date"]),
            ("Time", params["booking_time"]),
            ("Duration", params["booking_duration"]),
            ("Group ID", params["group_id"]),
            ("Notes", params["notes"]),
        ]
    )

    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 24px 0">
      Your reservation has been confirmed.
    </mj-text>

    <mj-text>
      Hi {params['to_name']},
    </mj-text>

    <mj-text>
      Thank you for booking with {ORGANIZATION_NAME}. Please keep your booking reference
      for any changes or questions.
    </mj-text>

    <mj-text align="center" font-size="22px" font-weight="700" color="{THEME['primary_dark']}"
      container-background-color="{THEME['primary_light']}" padding="16px">
      {params['booking_reference']}
    </mj-text>

    {details}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Please arrive a few minutes early. If you can no longer attend, cancel from your account so
      the slot becomes available to someone else.
    </mj-text>
    """

    return get_base_template(
        title="Reservation Confirmed",
        preview_text=f"Booking {params['booking_reference']} on {params['booking_date']} at {params['booking_time']}",
        content_sections=content,
        cta_url=FRONTEND_URL,
        cta_label="View My Reservations",
    )


def reservation_status_template(params: dict) -> str:
    """Status change (including cancellation) MJML template"""
    status = params["status"]
    status_color = STATUS_COLORS.get(status, THEME["text_primary"])

    details = booking_details_table(
        [
            ("Date", params["booking_date"]),
            ("Time", params["booking_time"]),
            ("Group ID", params["group_id"]),
            ("Reason", params["status_reason"]),
        ]
    )

    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 24px 0">
      The status of your reservation has changed.
    </mj-text>

    <mj-text>
      Hi {params['to_name']},
    </mj-text>

    <mj-text>
      Your reservation <strong>{params['booking_reference']}</strong> is now
      <strong style="color: {status_color};">{status}</strong>.
    </mj-text>

    {details}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      If you have any questions about this change, reply to this email.
    </mj-text>
    """

    return get_base_template(
        title=f"Reservation {status}",
        preview_text=f"Reservation {params['booking_reference']} is now {status}",
        content_sections=content,
        cta_url=FRONTEND_URL,
        cta_label="Book Another Slot",
    )
