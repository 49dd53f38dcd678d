"""Email utility: sends transactional emails via SMTP (TLS)."""
from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import settings

logger = logging.getLogger(__name__)


def _build_smtp_connection() -> smtplib.SMTP:
    """Open an SMTP TLS connection, authenticating when credentials are set."""
    conn = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=15)
    conn.ehlo()
    conn.starttls()
    conn.ehlo()
    if settings.SMTP_USER:
        conn.login(settings.SMTP_USER, settings.SMTP_PASS)
    return conn


def send_email(to: str, subject: str, html_body: str, plain_body: str = "") -> bool:
    """
    Send a transactional email. Returns True on success, False on failure.

    With ``EMAIL_SERVICE_ENABLED`` off nothing is sent and the call counts
    as delivered.
    """
    if not settings.EMAIL_SERVICE_ENABLED:
        logger.info(f"[Email] Service disabled, skipping '{subject}' to {to}")
        return True

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.PROJECT_NAME} <{settings.EMAIL_FROM}>"
        msg["To"] = to

        if plain_body:
            msg.attach(MIMEText(plain_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        with _build_smtp_connection() as conn:
            conn.sendmail(settings.EMAIL_FROM, [to], msg.as_string())

        logger.info(f"[Email] Sent '{subject}' to {to}")
        return True

    except (smtplib.SMTPException, OSError) as exc:
        logger.error(f"[Email] Failed to send '{subject}' to {to}: {exc}")
        return False


def send_otp_email(to: str, otp: str, name: str = "") -> bool:
    """Send a login code. Outside production the code is also written to the log."""
    if not settings.is_production:
        logger.info(f"[Email] Login code for {to}: {otp}")

    greeting = f"Hi {name}," if name else "Hello,"
    minutes = settings.OTP_EXPIRE_MINUTES
    subject = "Your login code"
    html_body = f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body {{ font-family: Arial, sans-serif; background: #f4f4f4; margin: 0; padding: 0; }}
    .container {{ max-width: 500px; margin: 40px auto; background: #fff;
                  border-radius: 8px; padding: 32px; box-shadow: 0 2px 8px rgba(0,0,0,.1); }}
    .otp {{ font-size: 40px; font-weight: 800; letter-spacing: 10px; color: #047857;
            background: #ecfdf5; padding: 16px 24px; border-radius: 8px;
            display: inline-block; margin: 16px 0; }}
    .footer {{ margin-top: 24px; font-size: 12px; color: #9ca3af; }}
  </style>
</head>
<body>
  <div class="container">
    <p>{greeting}</p>
    <p>Use the code below to sign in to {settings.PROJECT_NAME}.
       It expires in <strong>{minutes} minutes</strong>.</p>
    <div class="otp">{otp}</div>
    <p>If you did not request this code, please ignore this email.</p>
    <div class="footer">{settings.EMAIL_FROM}</div>
  </div>
</body>
</html>
"""
    plain_body = f"{greeting}\n\nYour login code is: {otp}\n\nIt expires in {minutes} minutes."
    return send_email(to, subject, html_body, plain_body)


def send_password_reset_email(to: str, name: str = "") -> bool:
    """Acknowledge a forgot-password request."""
    greeting = f"Hi {name}," if name else "Hello,"
    subject = "Password reset request"
    html_body = f"""
<p>{greeting}</p>
<p>We received a request to reset your {settings.PROJECT_NAME} password.
   You can sign in at any time with a one-time code sent to this address,
   or ask your coach or an administrator to reset it for you.</p>
<p>If you did not make this request, you can ignore this email.</p>
"""
    plain_body = (
        f"{greeting}\n\nWe received a request to reset your password. "
        "Sign in with a one-time code or contact your administrator."
    )
    return send_email(to, subject, html_body, plain_body)
