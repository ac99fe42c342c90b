# patchboard/notifications.py
"""Out-of-band delivery of verification codes.

A notifier exposes ``send_verification_email(email, otp)`` and returns a
``(message_id, error)`` pair: ``error`` is ``None`` on success and a short
description otherwise. It never raises for transport failures; the auth service
decides what a failed delivery means.
"""
import json
import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException
from patchboard.logging_config import setup_logging

logger = setup_logging()


def load_email_config(json_path):
    if not json_path:
        return None
    try:
        with open(json_path, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError:
        logger.error("Error decoding the email configuration file.")
        return None


def render_otp_email(otp, expiry_minutes, sender_name):
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">'
        '<h2 style="color: #333; text-align: center;">Email Verification</h2>'
        f'<p>Thank you for registering with {sender_name}. To verify your email address, '
        'please use the following OTP:</p>'
        '<div style="background-color: #f9f9f9; padding: 10px; text-align: center; font-size: 24px; '
        f'font-weight: bold; letter-spacing: 5px; margin: 20px 0;">{otp}</div>'
        f'<p>This OTP will expire in {expiry_minutes} minutes.</p>'
        '<p>If you did not request this verification, please ignore this email.</p>'
        f'<p>Best regards,<br>The {sender_name} Team</p>'
        '</div>'
    )


class BrevoNotifier:
    """Sends OTP emails through Brevo's transactional email API."""

    def __init__(self, api_key=None, sender_email=None, sender_name=None, expiry_minutes=10, suppress_send=False):
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.expiry_minutes = expiry_minutes
        self.suppress_send = suppress_send

    @classmethod
    def from_config(cls, config):
        api_key = config.get('BREVO_API_KEY')
        if not api_key:
            email_config = load_email_config(config.get('EMAIL_CONFIG_PATH'))
            if email_config:
                api_key = email_config.get('api_key')
        return cls(
            api_key=api_key,
            sender_email=config.get('MAIL_SENDER_EMAIL'),
            sender_name=config.get('MAIL_SENDER_NAME'),
            expiry_minutes=config.get('OTP_EXPIRY_MINUTES', 10),
            suppress_send=config.get('MAIL_SUPPRESS_SEND', False),
        )

    def _transactional_api(self):
        configuration = sib_api_v3_sdk.Configuration()
        configuration.api_key['api-key'] = self.api_key
        api_client = sib_api_v3_sdk.ApiClient(configuration)
        return sib_api_v3_sdk.TransactionalEmailsApi(api_client)

    def send_verification_email(self, email, otp):
        if self.suppress_send:
            logger.info(f"[DEV] Mail delivery suppressed, OTP for {email}: {otp}")
            return 'suppressed', None

        if not self.api_key:
            logger.error("Email service is not configured.")
            return None, 'Email service is not configured.'

        send_smtp_email = sib_api_v3_sdk.SendSmtpEmail(
            to=[{"email": email}],
            sender={"name": self.sender_name, "email": self.sender_email},
            subject="Email Verification OTP",
            html_content=render_otp_email(otp, self.expiry_minutes, self.sender_name),
        )

        try:
            api_response = self._transactional_api().send_transac_email(send_smtp_email)
        except ApiException as e:
            logger.error(f"Exception when calling TransactionalEmailsApi->send_transac_email: {e}")
            return None, str(e.reason or e)
        except Exception as e:
            logger.error(f"Failed to send OTP email: {str(e)}")
            return None, str(e)

        logger.info(f"OTP email sent successfully to {email}")
        return getattr(api_response, 'message_id', None), None
