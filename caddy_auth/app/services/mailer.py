"""
Account emails

Builds the signup confirmation and password reset messages and hands them
to the Notifier. Delivery failures are logged and reported as False; they
never undo the token state that was already issued.
"""

import logging
from urllib.parse import urlencode

from caddy_auth.app.services.notifier import INotifier, NotifierError

logger = logging.getLogger(__name__)

SIGNUP_CONFIRMATION_PATH = "/signup_confirmation"
PASSWORD_RESET_PATH = "/password_reset"


class AccountMailer:
    def __init__(self, notifier: INotifier, base_url: str, support_email: str):
        self.notifier = notifier
        self.base_url = base_url.rstrip("/")
        self.support_email = support_email

    def build_url(self, path: str, **query: str) -> str:
        url = f"{self.base_url}{path}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    async def _send(self, to: str, subject: str, body: str) -> bool:
        try:
            await self.notifier.send(to, subject, body)
        except NotifierError as e:
            logger.error(f"Email delivery failed for {to}: {e}")
            return False
        return True

    async def send_signup_confirmation(
        self, email: str, username: str, confirm_token: str, url_token: str
    ) -> bool:
        url = self.build_url(SIGNUP_CONFIRMATION_PATH, url_token=url_token)
        body = (
            f"Hello {username},\n\n"
            f"To confirm your new caddy account, open the link below and enter "
            f"the confirmation code.\n\n"
            f"Link: {url}\n"
            f"Confirmation code: {confirm_token}\n\n"
            f"The code expires after a while for security reasons; you can request "
            f"a new one from the signup confirmation page.\n"
            f"If you did not sign up, ignore this email or contact {self.support_email}.\n"
        )
        return await self._send(
            email, f"caddy signup confirmation for username {username}", body
        )

    async def send_password_reset(
        self, email: str, username: str, confirm_token: str, url_token: str
    ) -> bool:
        url = self.build_url(PASSWORD_RESET_PATH, url_token=url_token)
        body = (
            f"Hello {username},\n\n"
            f"Someone asked to reset the password of your caddy account. Open the "
            f"link below and enter the confirmation code to choose a new password.\n\n"
            f"Link: {url}\n"
            f"Confirmation code: {confirm_token}\n\n"
            f"A wrong code cancels this request; you would then need to request a new one.\n"
            f"If you did not ask for this, ignore this email or contact {self.support_email}.\n"
        )
        return await self._send(
            email, f"Password reset request for caddy username {username}", body
        )
