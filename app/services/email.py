import logging
import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from app.core.config import settings
from app.domain.contract_state import OtpPurpose

logger = logging.getLogger(__name__)

_SUBJECTS = {
    OtpPurpose.SIGN: "Your contract signing code",
    OtpPurpose.TERMINATION: "Your contract termination code",
}

_ACTIONS = {
    OtpPurpose.SIGN: "sign contract",
    OtpPurpose.TERMINATION: "confirm the termination of contract",
}


async def send_otp_email(email: str, code: str, purpose: OtpPurpose, contract_id: int) -> None:
    """
    Send a one-time password to a contract party.

    Args:
        email: The party's registered email address
        code: The plain OTP; only its digest is stored
        purpose: What the code authorizes
        contract_id: Contract the code is bound to
    """
    if not all([
        settings.smtp_host,
        settings.smtp_port,
        settings.smtp_user,
        settings.smtp_password,
        settings.smtp_from_email,
    ]):
        logger.warning("SMTP not configured - cannot send OTP email to %s", email)
        raise ValueError("SMTP is not configured. Please configure SMTP settings in .env file.")

    message = MIMEMultipart("alternative")
    message["Subject"] = _SUBJECTS[purpose]
    message["From"] = settings.smtp_from_email
    message["To"] = email

    action = _ACTIONS[purpose]
    text = f"""
Use the following code to {action} #{contract_id}:

{code}

This code will expire in {settings.otp_expire_minutes} minutes.

If you did not request this, please ignore this email.
    """
    html = f"""
<html>
  <body>
    <p>Use the following code to {action} #{contract_id}:</p>
    <p><strong>{code}</strong></p>
    <p>This code will expire in {settings.otp_expire_minutes} minutes.</p>
    <p>If you did not request this, please ignore this email.</p>
  </body>
</html>
    """
    if settings.frontend_url:
        link = f"{settings.frontend_url.rstrip('/')}/contracts/{contract_id}"
        text += f"\nOpen the contract: {link}\n"

    message.attach(MIMEText(text, "plain"))
    message.attach(MIMEText(html, "html"))

    send_kwargs = {
        "hostname": settings.smtp_host,
        "port": settings.smtp_port,
        "username": settings.smtp_user,
        "password": settings.smtp_password,
    }

    # Port 465 uses direct TLS, everything else STARTTLS
    if settings.smtp_use_tls:
        if settings.smtp_port == 465:
            send_kwargs["use_tls"] = True
        else:
            send_kwargs["start_tls"] = True

    await aiosmtplib.send(message, **send_kwargs)


async def deliver_otp(email: str, code: str, purpose: OtpPurpose, contract_id: int) -> bool:
    """Send an OTP email, logging instead of failing when delivery is not possible."""
    try:
        await send_otp_email(email, code, purpose, contract_id)
    except ValueError as e:
        logger.error("Failed to send OTP email: %s", e)
        return False
    except aiosmtplib.SMTPException as e:
        logger.error("SMTP error while sending OTP email to %s: %s", email, e)
        return False
    return True
