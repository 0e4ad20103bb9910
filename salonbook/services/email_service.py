"""Email notifications using SendGrid."""

import logging
from typing import Optional
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from salonbook.core.config import settings

logger = logging.getLogger(__name__)


def _wrap(title: str, body: str) -> str:
    return f"""
        <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <h2 style="color: #B5477A;">{title}</h2>
                    {body}
                    <p style="color: #666; font-size: 14px; margin-top: 40px;">
                        See you soon,<br>
                        {settings.SENDGRID_FROM_NAME}
                    </p>
                </div>
            </body>
        </html>
        """


def _service_rows(lines) -> str:
    rows = "".join(
        f"<li>{line.service_name} with {line.staff_name} at {line.start_time.strftime('%I:%M %p')}</li>"
        for line in lines
    )
    return f"<ul>{rows}</ul>"


class EmailService:
    """Email service for sending booking notifications."""

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.from_email = settings.SENDGRID_FROM_EMAIL
        self.from_name = settings.SENDGRID_FROM_NAME

        if not self.api_key:
            logger.warning("SENDGRID_API_KEY not configured. Emails will not be sent.")
            self.enabled = False
        else:
            self.client = SendGridAPIClient(self.api_key)
            self.enabled = True

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        plain_body: Optional[str] = None,
    ) -> bool:
        """
        Send an email.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.enabled:
            logger.info("Email service disabled. Would have sent to %s: %s", to, subject)
            return False

        try:
            message = Mail(
                from_email=(self.from_email, self.from_name),
                to_emails=to,
                subject=subject,
                html_content=html_body,
            )
            if plain_body:
                message.plain_text_content = plain_body

            response = self.client.send(message)

            if 200 <= response.status_code < 300:
                logger.info("Email sent successfully to %s: %s", to, subject)
                return True
            logger.error("Failed to send email to %s: %s %s", to, response.status_code, response.body)
            return False

        except Exception as e:
            logger.error("Error sending email to %s: %s", to, e)
            return False

    async def send_booking_confirmation(self, to: str, customer_name: str, start_time, lines) -> bool:
        subject = "Your appointment is confirmed"
        when = start_time.strftime("%A, %B %d, %Y at %I:%M %p")
        html_body = _wrap(
            f"See you soon, {customer_name}!",
            f"<p>Your appointment on <strong>{when}</strong> is confirmed.</p>{_service_rows(lines)}",
        )
        plain_body = f"Your appointment on {when} is confirmed."
        return await self.send_email(to, subject, html_body, plain_body)

    async def send_reschedule_notice(self, to: str, customer_name: str, start_time, lines) -> bool:
        when = start_time.strftime("%A, %B %d, %Y at %I:%M %p")
        html_body = _wrap(
            f"Your appointment has moved, {customer_name}",
            f"<p>Your new time is <strong>{when}</strong>.</p>{_service_rows(lines)}",
        )
        return await self.send_email(to, "Your appointment was rescheduled", html_body, f"New time: {when}.")

    async def send_cancellation_notice(self, to: str, customer_name: str, start_time) -> bool:
        when = start_time.strftime("%A, %B %d, %Y at %I:%M %p")
        html_body = _wrap(
            "Appointment cancelled",
            f"<p>Hi {customer_name}, your appointment on {when} has been cancelled.</p>",
        )
        return await self.send_email(to, "Your appointment was cancelled", html_body)

    async def send_reminder(self, to: str, customer_name: str, start_time, lines, lead: str) -> bool:
        """Reminder ahead of an appointment; ``lead`` reads like "tomorrow" or "in 15 minutes"."""
        subject = f"Reminder: your appointment is {lead}"
        html_body = _wrap(
            f"Hi {customer_name}, your appointment is {lead}",
            f"<p>Starts at <strong>{start_time.strftime('%I:%M %p')}</strong>.</p>{_service_rows(lines)}",
        )
        return await self.send_email(to, subject, html_body)

    async def send_invoice(self, to: str, customer_name: str, invoice) -> bool:
        rows = "".join(
            f"<tr><td>{line.service_name}</td><td>{line.staff_name}</td>"
            f"<td style='text-align:right'>{line.price:.2f}</td></tr>"
            for line in invoice.lines
        )
        html_body = _wrap(
            "Payment received",
            f"<p>Thanks {customer_name}, we received your payment.</p>"
            f"<table width='100%'>{rows}"
            f"<tr><td colspan='2'><strong>Total</strong></td>"
            f"<td style='text-align:right'><strong>{invoice.currency} {invoice.amount:.2f}</strong></td></tr></table>"
            f"<p>Reference: {invoice.provider} {invoice.provider_payment_id or ''}</p>",
        )
        return await self.send_email(to, "Invoice for your appointment", html_body)
