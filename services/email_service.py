"""
Email Service - Outgoing mail to customers and operators.

This service handles:
- Sending quotes and invoices to customers
- Password reset links
- Plain-text and HTML alternatives for every message

Mail is only sent when SMTP_HOST and SMTP_USER are configured. Otherwise the
message is logged and dropped.
"""

import logging
import os
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape

from services.base_repository import setting

logger = logging.getLogger(__name__)


class EmailService:
    """SMTP mail sender."""

    def __init__(self):
        # Settings come from the Flask config, or the environment outside a request
        self.smtp_host = setting('SMTP_HOST', os.environ.get('SMTP_HOST', ''))
        self.smtp_port = int(setting('SMTP_PORT', os.environ.get('SMTP_PORT', 587)))
        self.smtp_user = setting('SMTP_USER', os.environ.get('SMTP_USER', ''))
        self.smtp_password = setting('SMTP_PASSWORD', os.environ.get('SMTP_PASSWORD', ''))
        self.from_email = setting('FROM_EMAIL', os.environ.get('FROM_EMAIL', 'noreply@tradeflow.app'))
        self.email_enabled = bool(self.smtp_host and self.smtp_user)

    def send(self, to_email: str, subject: str, text: str, html: str = None) -> bool:
        """
        Send a message.

        Returns:
            True when the message was handed to the SMTP server. Failures are
            logged and reported as False so callers can carry on.
        """
        if not to_email:
            logger.info(f"No recipient for '{subject}', skipping email")
            return False

        if not self.email_enabled:
            logger.info(f"Email disabled, not sending '{subject}' to {to_email}")
            return False

        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = self.from_email
        msg['To'] = to_email
        msg.attach(MIMEText(text, 'plain'))
        if html:
            msg.attach(MIMEText(html, 'html'))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
            logger.info(f"Email sent to {to_email}: {subject}")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to_email}: {e}")
            return False

    @staticmethod
    def _html(title: str, paragraphs, link: str = None, link_label: str = None) -> str:
        body = ''.join(f"<p>{escape(p)}</p>" for p in paragraphs if p)
        button = ''
        if link:
            button = (f'<p><a href="{escape(link)}" style="background:#2563eb;color:#fff;'
                      f'padding:10px 18px;border-radius:6px;text-decoration:none;">'
                      f'{escape(link_label or link)}</a></p>')
        return f"""
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background: #1e3a8a; color: white; padding: 20px; border-radius: 8px 8px 0 0; }}
        .content {{ background: #f9f9f9; padding: 20px; border: 1px solid #ddd; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h2 style="margin: 0;">{escape(title)}</h2></div>
        <div class="content">{body}{button}</div>
    </div>
</body>
</html>
"""

    def send_quote(self, quote, business_name: str) -> bool:
        """Email a quote summary to the quote's customer."""
        customer = quote.customer
        title = f"Quote #{quote.id[:8]} from {business_name}"
        lines = [f"{s.service_name} x{s.quantity}: ${s.price * s.quantity:.2f}" for s in quote.services]
        paragraphs = [
            f"Hi {customer.name},",
            f"{business_name} has sent you a quote for ${quote.total_amount:.2f}.",
            *lines,
            f"This quote is valid until {quote.valid_until.isoformat()}." if quote.valid_until else None,
            quote.customer_notes,
        ]
        text = '\n\n'.join(p for p in paragraphs if p)
        return self.send(customer.email, title, text, self._html(title, paragraphs))

    def send_invoice(self, invoice, business_name: str, payment_url: str = None) -> bool:
        """Email an invoice to its customer, with the online payment link when one exists."""
        customer = invoice.customer
        title = f"Invoice #{invoice.id[:8]} from {business_name}"
        paragraphs = [
            f"Hi {customer.name},",
            f"{business_name} has sent you an invoice for ${invoice.balance_due:.2f}.",
            f"Payment is due by {invoice.due_date.isoformat()}." if invoice.due_date else None,
            invoice.notes,
        ]
        text = '\n\n'.join(p for p in paragraphs if p)
        if payment_url:
            text += f"\n\nPay online: {payment_url}"
        html = self._html(title, paragraphs, payment_url, 'Pay online')
        return self.send(customer.email, title, text, html)

    def send_password_reset(self, to_email: str, reset_url: str) -> bool:
        title = "Reset your TradeFlow password"
        paragraphs = [
            "We received a request to reset your password.",
            "If you did not ask for this you can ignore this email.",
        ]
        text = '\n\n'.join(paragraphs) + f"\n\nReset your password: {reset_url}"
        return self.send(to_email, title, text, self._html(title, paragraphs, reset_url, 'Reset password'))
