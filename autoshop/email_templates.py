"""
MJML Email Templates
Customer appointment emails, one template per notification action, and staff password-reset codes
"""

from datetime import date
from typing import Optional

from .config import FRONTEND_URL, SHOP_ADDRESS, SHOP_NAME
from .utils.sanitization import sanitize_string

# Shop theme colors
THEME = {
    "primary": "#dc2626",
    "primary_dark": "#b91c1c",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
}


def format_date_display(value: date) -> str:
    """Calendar date as written to customers, e.g. Monday, March 3, 2025"""
    return f"{value.strftime('%A')}, {value.strftime('%B')} {value.day}, {value.year}"


def format_time_12h(time_str: str) -> str:
    hour, minute = map(int, time_str.split(":")[:2])
    period = "AM" if hour < 12 else "PM"
    display_hour = hour if hour <= 12 else hour - 12
    if display_hour == 0:
        display_hour = 12
    return f"{display_hour}:{minute:02d} {period}"


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
        <mj-section background-color="{THEME['primary']}" padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="22px" font-weight="700" color="#ffffff" padding="0">
              {SHOP_NAME}
            </mj-text>
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}

            <mj-text padding="24px 0 0 0">
              Best regards,<br/>{SHOP_NAME} Team
            </mj-text>
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              {SHOP_NAME} • {SHOP_ADDRESS}
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _details_list(rows: list[tuple[str, Optional[str]]]) -> str:
    """Label/value rows; rows without a value are skipped"""
    items = "".join(
        f"<li><strong>{label}:</strong> {sanitize_string(value)}</li>"
        for label, value in rows
        if value
    )
    return f"""
    <mj-text padding="0 0 16px 0">
      <ul style="padding-left: 20px; margin: 0;">{items}</ul>
    </mj-text>
    """


def _location_section(label: str = "Location") -> str:
    return f"""
    <mj-text>
      <strong>{label}:</strong> {SHOP_ADDRESS}
    </mj-text>
    """


def appointment_booking_template(
    customer_name: str,
    confirmation_number: str,
    appointment_date: date,
    appointment_time: str,
    services: list[str],
    vehicle: Optional[str] = None,
    notes: Optional[str] = None,
) -> str:
    """Booking confirmation MJML template"""
    name = sanitize_string(customer_name)
    details = _details_list(
        [
            ("Confirmation Number", confirmation_number),
            ("Date", format_date_display(appointment_date)),
            ("Time", format_time_12h(appointment_time)),
            ("Services", ", ".join(services)),
            ("Vehicle", vehicle),
            ("Notes", notes),
        ]
    )
    content = f"""
    <mj-text>
      Thank you for your booking, {name}! Your appointment has been confirmed with the following details:
    </mj-text>
    {details}
    <mj-text>
      Please keep your confirmation number for future reference. You can use it to look up or cancel your appointment.
    </mj-text>
    {_location_section()}
    <mj-text color="{THEME['text_muted']}">
      If you need to cancel or reschedule, please contact us or use your confirmation number.
    </mj-text>
    """

    return get_base_template(
        title="Appointment Confirmed",
        preview_text=f"Confirmation number {confirmation_number}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/book",
        cta_label="Manage Appointment",
    )


def appointment_updated_template(
    customer_name: str,
    confirmation_number: str,
    appointment_date: date,
    appointment_time: str,
    services: list[str],
    notes: Optional[str] = None,
) -> str:
    """Reschedule notice MJML template"""
    when = f"{format_date_display(appointment_date)} at {format_time_12h(appointment_time)}"
    details = _details_list(
        [
            ("Confirmation Number", confirmation_number),
            ("New Date", format_date_display(appointment_date)),
            ("New Time", format_time_12h(appointment_time)),
            ("Services", ", ".join(services)),
            ("Notes", notes),
        ]
    )
    content = f"""
    <mj-text>
      Hi {sanitize_string(customer_name)}, your appointment details have been changed:
    </mj-text>
    {details}
    {_location_section()}
    <mj-text color="{THEME['text_muted']}">
      If you have any questions, please contact us.
    </mj-text>
    """

    return get_base_template(
        title="Your Appointment Has Been Updated",
        preview_text=f"New time: {when}",
        content_sections=content,
    )


def appointment_cancelled_template(
    customer_name: str,
    confirmation_number: str,
    appointment_date: date,
    appointment_time: str,
) -> str:
    """Cancellation notice MJML template"""
    content = f"""
    <mj-text>
      Dear {sanitize_string(customer_name)},
    </mj-text>
    <mj-text>
      Your appointment ({confirmation_number}) scheduled for {format_date_display(appointment_date)}
      at {format_time_12h(appointment_time)} has been cancelled.
    </mj-text>
    <mj-text>
      If you would like to book a new appointment, please visit our website.
    </mj-text>
    """

    return get_base_template(
        title="Appointment Cancelled",
        preview_text=f"Appointment {confirmation_number} has been cancelled",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/book",
        cta_label="Book Again",
    )


def service_in_progress_template(
    customer_name: str,
    confirmation_number: str,
    services: list[str],
) -> str:
    """Work started MJML template"""
    details = _details_list(
        [("Confirmation Number", confirmation_number), ("Services", ", ".join(services))]
    )
    content = f"""
    <mj-text>
      Dear {sanitize_string(customer_name)},
    </mj-text>
    <mj-text>
      We've started working on your vehicle. Your service is currently in progress.
    </mj-text>
    {details}
    <mj-text>
      We'll notify you when the service is complete.
    </mj-text>
    """

    return get_base_template(
        title="Your Service Has Started",
        preview_text="We're working on your vehicle",
        content_sections=content,
    )


def _invoice_section(invoice: dict) -> str:
    """Invoice table; amounts are shown exactly as supplied"""
    rows = "".join(
        f"""
        <tr>
          <td style="padding: 8px; border-bottom: 1px solid {THEME['border']};">{sanitize_string(line['service'])}</td>
          <td style="padding: 8px; border-bottom: 1px solid {THEME['border']}; text-align: right;">${line['cost']:.2f}</td>
        </tr>"""
        for line in invoice.get("services_performed") or []
    )

    items = ""
    if invoice.get("items_purchased"):
        items = f"""
        <mj-text>
          <strong>Items/Parts Purchased:</strong><br/>{sanitize_string(invoice['items_purchased'])}
        </mj-text>
        """

    return f"""
    <mj-text font-size="18px" font-weight="600" color="{THEME['text_primary']}" padding="16px 0 8px 0">
      Invoice Details
    </mj-text>
    <mj-table>
      <tr style="background-color: {THEME['background']};">
        <th style="padding: 8px; text-align: left;">Service</th>
        <th style="padding: 8px; text-align: right;">Cost</th>
      </tr>
      {rows}
    </mj-table>
    {items}
    <mj-text background-color="{THEME['background']}" padding="12px 0">
      <strong>Subtotal:</strong> ${invoice['subtotal']:.2f}<br/>
      <strong>Taxes:</strong> ${invoice['taxes']:.2f}<br/>
      <span style="font-size: 18px;"><strong>Total:</strong> ${invoice['total_cost']:.2f}</span>
    </mj-text>
    """


def service_complete_template(
    customer_name: str,
    confirmation_number: str,
    services: list[str],
    notes: Optional[str] = None,
    invoice: Optional[dict] = None,
) -> str:
    """Vehicle ready MJML template, with the invoice when one is supplied"""
    details = _details_list(
        [
            ("Confirmation Number", confirmation_number),
            ("Services", ", ".join(services)),
            ("Notes", notes),
        ]
    )
    invoice_section = _invoice_section(invoice) if invoice else ""
    location = _location_section("Ready for pickup at")
    content = f"""
    <mj-text>
      Dear {sanitize_string(customer_name)},
    </mj-text>
    <mj-text>
      Great news! We've completed the service on your vehicle.
    </mj-text>
    {details}
    {invoice_section}
    {location}
    <mj-text>
      Thank you for choosing {SHOP_NAME}!
    </mj-text>
    """

    return get_base_template(
        title="Your Vehicle Is Ready!",
        preview_text="Your service is complete and ready for pickup",
        content_sections=content,
    )


def password_reset_code_template(code: str, expires_minutes: int) -> str:
    """Staff password reset verification code"""
    content = f"""
    <mj-text>
      You requested to reset your password for the {SHOP_NAME} admin panel.
    </mj-text>
    <mj-text align="center" color="{THEME['text_muted']}" font-size="14px" padding="16px 0 0 0">
      Your verification code is:
    </mj-text>
    <mj-text align="center" font-size="36px" font-weight="700" letter-spacing="8px" color="{THEME['text_primary']}" font-family="monospace" padding="8px 0 16px 0">
      {sanitize_string(code)}
    </mj-text>
    <mj-text>
      This code will expire in {expires_minutes} minutes.
    </mj-text>
    <mj-text color="{THEME['text_muted']}">
      If you didn't request this, please ignore this email.
    </mj-text>
    """

    return get_base_template(
        title="Password Reset Request",
        preview_text="Your verification code",
        content_sections=content,
    )


def with_admin_banner(mjml_content: str) -> str:
    """Insert a banner section at the top of the email body marking the shop's copy"""
    banner = f"""
        <mj-section padding="12px 20px 0">
          <mj-column>
            <mj-text align="center" font-size="14px" color="{THEME['text_muted']}" padding="0">
              Admin notification copy
            </mj-text>
          </mj-column>
        </mj-section>
    """
    body_start = mjml_content.index("<mj-body")
    insert_at = mjml_content.index(">", body_start) + 1
    return mjml_content[:insert_at] + banner + mjml_content[insert_at:]


def render_appointment_email(payload: dict) -> tuple[str, str]:
    """
    Build the subject line and MJML body for an appointment notification.

    Args:
        payload: AppointmentEmailPayload as a dict (appointment_date may be a date or ISO string)

    Returns:
        (subject, mjml_content)

    Raises:
        ValueError: If the action is unknown
    """
    action = payload["action"]
    appointment_date = payload["appointment_date"]
    if isinstance(appointment_date, str):
        appointment_date = date.fromisoformat(appointment_date)
    services = payload.get("services") or []

    if action == "booking":
        subject = f"Appointment Confirmation - {SHOP_NAME}"
        body = appointment_booking_template(
            payload["customer_name"],
            payload["confirmation_number"],
            appointment_date,
            payload["appointment_time"],
            services,
            vehicle=payload.get("vehicle"),
            notes=payload.get("notes"),
        )
    elif action == "update":
        subject = f"Appointment Updated - {SHOP_NAME}"
        body = appointment_updated_template(
            payload["customer_name"],
            payload["confirmation_number"],
            appointment_date,
            payload["appointment_time"],
            services,
            notes=payload.get("notes"),
        )
    elif action == "cancel":
        subject = f"Appointment Cancelled - {SHOP_NAME}"
        body = appointment_cancelled_template(
            payload["customer_name"],
            payload["confirmation_number"],
            appointment_date,
            payload["appointment_time"],
        )
    elif action == "in_progress":
        subject = f"Service In Progress - {SHOP_NAME}"
        body = service_in_progress_template(
            payload["customer_name"], payload["confirmation_number"], services
        )
    elif action == "complete":
        subject = f"Service Complete - Invoice - {SHOP_NAME}"
        body = service_complete_template(
            payload["customer_name"],
            payload["confirmation_number"],
            services,
            notes=payload.get("notes"),
            invoice=payload.get("invoice"),
        )
    else:
        raise ValueError(f"Unknown appointment email action: {action}")

    return subject, body


__all__ = [
    "THEME",
    "appointment_booking_template",
    "appointment_cancelled_template",
    "appointment_updated_template",
    "format_date_display",
    "format_time_12h",
    "get_base_template",
    "password_reset_code_template",
    "render_appointment_email",
    "service_complete_template",
    "service_in_progress_template",
    "with_admin_banner",
]
