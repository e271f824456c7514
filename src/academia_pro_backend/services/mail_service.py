'''
Outgoing mail. There is no mail provider configured, so the default
implementation only records in the application log that a message was sent.
'''
from ..common.logger import log


class MailService:
    """
    Injectable mail sender. Swap it through FastAPI's dependency overrides
    to plug in a real provider.
    """
    async def send_password_reset(self, email: str, reset_token: str) -> None:
        # The token is a credential; it only appears when debug logging is on.
        log.info(f"Password reset issued for {email}.")
        log.debug(f"Password reset token for {email}: {reset_token}")
