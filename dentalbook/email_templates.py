"""
MJML Email Templates
Booking confirmation emails for patients and practices
"""

from typing import Optional

from .config import FRONTEND_URL

THEME = {
    "primary": "#2563eb",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
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
            <mj-button href="{cta_url}" background-color="{THEME['primary']}" color="#ffffff"
              font-weight="600" border-radius="8px" padding="18px 40px" font-size="16px">
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
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>
        {cta_section}
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="{THEME['text_muted']}" padding="0">
              DentalBook - book your next dental appointment online
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _appointment_details(service_label: str, when: str) -> str:
    return f"""
    <mj-table font-size="15px" color="{THEME['text_secondary']}" padding="8px 0 16px 0">
      <tr><td style="padding: 4px 0; font-weight: 600;">Service</td><td>{service_label}</td></tr>
      <tr><td style="padding: 4px 0; font-weight: 600;">Date &amp; Time</td><td>{when}</td></tr>
    </mj-table>
    """


def patient_booking_confirmation_template(practice_name: str, service_label: str, when: str) -> str:
    content = f"""
    <mj-text>Your appointment with <strong>{practice_name}</strong> is confirmed.</mj-text>
    {_appointment_details(service_label, when)}
    <mj-text>Thank you for booking with us!</mj-text>
    """
    return get_base_template(
        title="Appointment Confirmed",
        preview_text=f"Your appointment with {practice_name} is confirmed",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/my-appointments",
        cta_label="View My Appointments",
    )


def practice_booking_notification_template(practice_name: str, service_label: str, when: str) -> str:
    content = f"""
    <mj-text>Dear {practice_name}, a patient has booked an appointment:</mj-text>
    {_appointment_details(service_label, when)}
    <mj-text>Please prepare accordingly.</mj-text>
    """
    return get_base_template(
        title="New Booking",
        preview_text="A patient has booked an appointment",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/practice-dashboard/appointments",
        cta_label="Open Calendar",
    )


def patient_booking_confirmation_text(practice_name: str, service_label: str, when: str) -> str:
    return (
        "Dear Patient,\n"
        f"Your appointment with {practice_name} is confirmed:\n"
        f"- Service: {service_label}\n"
        f"- Date & Time: {when}\n"
        "Thank you for booking with us!\n"
    )


def practice_booking_notification_text(practice_name: str, service_label: str, when: str) -> str:
    return (
        f"Dear {practice_name},\n"
        "A patient has booked an appointment:\n"
        f"- Service: {service_label}\n"
        f"- Date & Time: {when}\n"
        "Please prepare accordingly.\n"
    )
