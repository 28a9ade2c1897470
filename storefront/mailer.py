from typing import Dict, Optional, Tuple
from urllib.parse import urljoin

import resend

from .config import Settings


def send_email_via_resend(payload: Dict[str, object], api_key: str) -> Tuple[bool, Optional[str]]:
    configured_api_key = (api_key or "").strip()
    if not configured_api_key:
        return False, "Resend API key is not configured."

    previous_api_key = getattr(resend, "api_key", None)
    resend.api_key = configured_api_key
    try:
        response = resend.Emails.send(payload)
    except Exception as exc:
        return False, str(exc)
    finally:
        resend.api_key = previous_api_key

    if not isinstance(response, dict) or not response.get("id"):
        return False, str(response)

    return True, None


class PasswordResetMailer:
    """Delivers raw reset tokens to account owners through Resend."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.resend_api_key
        self._sender = settings.password_reset_sender_email
        self._subject = settings.password_reset_subject
        self._frontend_url = settings.frontend_url.rstrip("/") + "/"
        self._expiration_minutes = settings.reset_token_ttl_minutes

    def build_reset_url(self, raw_token: str) -> str:
        return urljoin(self._frontend_url, f"reset-password/{raw_token}")

    def send_password_reset_email(self, recipient_email: str, raw_token: str):
        reset_url = self.build_reset_url(raw_token)
        text_body = (
            "You requested a password reset. Copy and paste this link into your browser:\n\n"
            f"{reset_url}\n\n"
            f"This link expires in {self._expiration_minutes} minutes."
        )
        html_body = (
            "<p>You requested a password reset. Click the link below to set a new password:</p>"
            f'<p><a href="{reset_url}">{reset_url}</a></p>'
            f"<p><em>This link will expire in {self._expiration_minutes} minutes.</em></p>"
        )
        payload: Dict[str, object] = {
            "from": f"Storefront <{self._sender}>",
            "to": [recipient_email],
            "subject": self._subject,
            "html": html_body,
            "text": text_body,
        }
        return send_email_via_resend(payload, self._api_key)
