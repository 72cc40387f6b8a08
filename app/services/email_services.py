import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from app.config import settings

logger = logging.getLogger(__name__)


class EmailNotConfigured(RuntimeError):
    pass


OTP_TEMPLATE = """
<!DOCTYPE html>
<html>
  <body style="margin:0; padding:0; font-family:Arial, Helvetica, sans-serif; background:#f6f6f6;">
    <table width="100%" cellpadding="0" cellspacing="0" style="background:#f6f6f6; padding:32px 0;">
      <tr>
        <td align="center">
          <table width="420" cellpadding="0" cellspacing="0" style="background:#ffffff; border-radius:12px; padding:28px;">
            <tr>
              <td align="center" style="font-size:20px; font-weight:bold; color:#111;">
                Your Clay Roofing New York login code
              </td>
            </tr>
            <tr><td style="height:24px;"></td></tr>
            <tr>
              <td align="center">
                <div style="font-size:30px; font-weight:bold; letter-spacing:6px; padding:14px 22px;
                            background:#ea580c; color:white; border-radius:8px; display:inline-block;">
                  {{OTP}}
                </div>
              </td>
            </tr>
            <tr><td style="height:24px;"></td></tr>
            <tr>
              <td style="font-size:14px; color:#666; line-height:1.5;">
                This code is valid for {{MINUTES}} minutes.<br>
                If you didn't request it, you can ignore this email.
              </td>
            </tr>
          </table>
        </td>
      </tr>
    </table>
  </body>
</html>
"""


def email_configured() -> bool:
    return bool(settings.SMTP_HOST and settings.FROM_EMAIL)


def send_email(
    to_emails: list[str],
    subject: str,
    html_message: str,
    text_message: str | None = None,
    reply_to: str | list[str] | None = None,
) -> None:
    if not email_configured():
        raise EmailNotConfigured("SMTP is not configured. Set SMTP_HOST and FROM_EMAIL.")

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.FROM_EMAIL
    msg["To"] = ", ".join(to_emails)
    if reply_to:
        msg["Reply-To"] = reply_to if isinstance(reply_to, str) else ", ".join(reply_to)
    if text_message:
        msg.attach(MIMEText(text_message, "plain"))
    msg.attach(MIMEText(html_message, "html"))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        if settings.SMTP_USER:
            server.login(settings.SMTP_USER, settings.SMTP_PASS)
        server.send_message(msg)
    logger.info("Email sent subject=%r recipients=%s", subject, len(to_emails))


def send_email_otp(to_email: str, otp: str) -> None:
    html = OTP_TEMPLATE.replace("{{OTP}}", otp).replace("{{MINUTES}}", str(settings.OTP_EXPIRE_MINUTES))
    text = f"Your Clay Roofing NY login code: {otp}"
    send_email([to_email], "Your Clay Roofing NY login code", html, text)


def _submission_rows(submission) -> str:
    fields = [
        ("Name", submission.name),
        ("Email", submission.email),
        ("Phone", submission.phone),
        ("Company", submission.company),
        ("Contact Type", submission.contact_type),
        ("Tile Family", submission.tile_family),
        ("Tile Color", submission.tile_color),
    ]
    return "".join(
        f'<tr><td style="padding:6px 0;width:160px;color:#666">{label}</td><td>{escape(value or "-")}</td></tr>'
        for label, value in fields
    )


def _submission_text(submission) -> str:
    return (
        f"Name: {submission.name}\n"
        f"Email: {submission.email}\n"
        f"Phone: {submission.phone or '-'}\n"
        f"Company: {submission.company or '-'}\n"
        f"Contact Type: {submission.contact_type or '-'}\n"
        f"Tile Family: {submission.tile_family or '-'}\n"
        f"Tile Color: {submission.tile_color or '-'}\n"
        f"Message:\n{submission.message}\n"
    )


def send_team_notification(submission) -> None:
    submitted_at = submission.submitted_at.strftime("%Y-%m-%d %H:%M UTC")
    attachments = "".join(
        f'<li><a href="{escape(url)}">{escape(url.rsplit("/", 1)[-1])}</a></li>'
        for url in submission.uploaded_files or []
    )
    html = (
        f"<h2>New Contact Submission</h2>"
        f"<p>Submitted {submitted_at} (ID: {submission.id})</p>"
        f"<table>{_submission_rows(submission)}</table>"
        f"<h3>Message</h3><p style=\"white-space:pre-wrap\">{escape(submission.message)}</p>"
        f"<h3>Attachments ({len(submission.uploaded_files or [])})</h3><ul>{attachments}</ul>"
    )
    text = (
        f"New contact submission (submitted {submitted_at}, ID: {submission.id}):\n"
        f"{_submission_text(submission)}"
        f"Attachments: {len(submission.uploaded_files or [])} file(s)"
    )
    send_email(
        settings.CONTACT_TO,
        f"New Contact from {submission.name} (ID: {submission.id})",
        html,
        text,
        reply_to=submission.email,
    )


def send_submission_confirmation(submission) -> None:
    html = (
        f"<h2>Thanks, {escape(submission.name or 'there')}!</h2>"
        f"<p>We received your message. Our Client Relations Manager will contact you shortly."
        f" Below is a copy of what you sent:</p>"
        f"<table>{_submission_rows(submission)}</table>"
        f"<h3>Your Message</h3><p style=\"white-space:pre-wrap\">{escape(submission.message)}</p>"
        f"<p>If this is urgent, call us at {settings.COMPANY_PHONE}.</p>"
    )
    text = (
        f"Thanks, {submission.name}!\n"
        f"We received your message (ID: {submission.id}).\n"
        f"{_submission_text(submission)}"
        f"If this is urgent, call us at {settings.COMPANY_PHONE}.\n"
        f"Clay Roofing New York"
    )
    send_email(
        [submission.email],
        f"Thank you {submission.name} - Contact Received",
        html,
        text,
        reply_to=settings.CONTACT_TO or None,
    )
