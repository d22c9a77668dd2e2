"""
Shared-secret authentication.

Two secrets are configured: the standard API key and the admin key. The admin
key is a superset credential: it is accepted everywhere the standard key is.
"""

import hmac
from typing import Optional

from auth.models import ClientIdentity
from common.exceptions import InvalidAPIKeyException, MissingCredentialsException
from common.logging import get_logger, log_security_event
from config.config import Settings

logger = get_logger("auth_service")


def _matches(credential: str, secret: Optional[str]) -> bool:
    # An unset secret never matches, not even an empty credential.
    if not secret:
        return False
    return hmac.compare_digest(credential.encode("utf-8"), secret.encode("utf-8"))


class Authenticator:
    """Validates bearer credentials and classifies the caller."""

    def __init__(self, api_key: Optional[str], admin_key: Optional[str]):
        self.api_key = api_key
        self.admin_key = admin_key
        if not api_key and not admin_key:
            logger.warning("No API secrets configured; every authenticated request will be rejected")

    def authenticate(
        self,
        credential: Optional[str],
        admin_required: bool = False,
        ip_address: Optional[str] = None,
    ) -> ClientIdentity:
        """
        Classify a bearer credential. On admin-only routes the admin key is the
        only accepted secret; a standard key there fails like an unknown one.
        """
        if not credential:
            log_security_event("auth_failed", ip_address=ip_address, details={"reason": "missing_credentials"})
            raise MissingCredentialsException()

        if _matches(credential, self.admin_key):
            return ClientIdentity.admin()

        if _matches(credential, self.api_key):
            if admin_required:
                log_security_event(
                    "auth_failed",
                    client_id=ClientIdentity.user().id,
                    ip_address=ip_address,
                    details={"reason": "admin_required"},
                )
                raise InvalidAPIKeyException(reason="admin_required")
            return ClientIdentity.user()

        log_security_event("auth_failed", ip_address=ip_address, details={"reason": "invalid_api_key"})
        raise InvalidAPIKeyException()


def create_authenticator(settings: Settings) -> Authenticator:
    """Factory function to create Authenticator from settings."""
    return Authenticator(api_key=settings.api_key, admin_key=settings.admin_key)
