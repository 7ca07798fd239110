"""ZeptoMail implementation of EmailProvider.

Messages are posted to the ZeptoMail HTTP API with an httpx.AsyncClient whose
timeout comes from EmailSettings, so a slow mail API fails the send instead
of hanging the request. HTML bodies are rendered from Jinja2 templates.
"""

import os
from typing import Optional

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from shared.logging import get_logger

log = get_logger(__name__)

_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


def _format_window(minutes: int) -> str:
    if minutes % 60 == 0 and minutes >= 60:
        hours = minutes // 60
        return f"{hours} hour{'s' if hours != 1 else ''}"
    return f"{minutes} minute{'s' if minutes != 1 else ''}"


class ZeptoMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        app_name: str = "Authify",
        app_url: str = "http://localhost:5173",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = settings
        self._app_name = app_name
        self._app_url = app_url
        self._http = http_client or httpx.AsyncClient(
            timeout=settings.email_timeout_seconds
        )
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(
        self,
        to_email: str,
        to_name: Optional[str],
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        if not self._settings.zepto_api_token:
            log.error("email_send_failed", reason="api_token_not_configured")
            return False

        payload: dict = {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [
                {
                    "email_address": {
                        "address": to_email,
                        "name": to_name or to_email,
                    }
                }
            ],
            "subject": subject,
            "htmlbody": html_body,
            "textbody": text_body,
        }

        auth_header = self._settings.zepto_api_token
        if not auth_header.startswith("Zoho-enczapikey "):
            auth_header = f"Zoho-enczapikey {auth_header}"

        try:
            response = await self._http.post(
                self._settings.zepto_api_url,
                json=payload,
                headers={"Authorization": auth_header},
            )
        except httpx.HTTPError as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if response.status_code in (200, 201, 202):
            log.info("email_sent", to_email=to_email, subject=subject)
            return True
        log.error(
            "email_send_failed",
            to_email=to_email,
            subject=subject,
            status_code=response.status_code,
            response=response.text[:200],
        )
        return False

    def _render(self, template_name: str, **context) -> str:
        template = self._jinja.get_template(template_name)
        return template.render(
            app_name=self._app_name, app_url=self._app_url, **context
        )

    async def send_password_reset_email(
        self,
        email: str,
        user_name: Optional[str],
        otp_code: str,
        expires_in_minutes: int,
    ) -> bool:
        window = _format_window(expires_in_minutes)
        subject = f"Password reset code - {self._app_name}"
        html_body = self._render(
            "password_reset.html", otp_code=otp_code, user_name=user_name, window=window
        )
        text_body = (
            f"Hello{f' {user_name}' if user_name else ''},\n\n"
            f"Your password reset code is: {otp_code}\n\n"
            f"This code expires in {window}. If you did not ask to reset your "
            f"password you can ignore this email."
        )
        return await self._send(email, user_name, subject, html_body, text_body)

    async def send_verification_email(
        self,
        email: str,
        user_name: Optional[str],
        otp_code: str,
        expires_in_minutes: int,
    ) -> bool:
        window = _format_window(expires_in_minutes)
        subject = f"Verify your account - {self._app_name}"
        html_body = self._render(
            "verification.html", otp_code=otp_code, user_name=user_name, window=window
        )
        text_body = (
            f"Hello{f' {user_name}' if user_name else ''},\n\n"
            f"Your account verification code is: {otp_code}\n\n"
            f"This code expires in {window}."
        )
        return await self._send(email, user_name, subject, html_body, text_body)

    async def send_welcome_email(self, email: str, user_name: Optional[str]) -> bool:
        subject = f"Welcome to {self._app_name}"
        html_body = self._render("welcome.html", user_name=user_name)
        text_body = (
            f"Welcome to {self._app_name}{f', {user_name}' if user_name else ''}!\n\n"
            f"Your account is verified. Sign in at {self._app_url}"
        )
        return await self._send(email, user_name, subject, html_body, text_body)
