# ============================================================================
# GATEWAY AUTHENTICATION
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Gateway - HTTP Basic authentication
# PURPOSE: Pluggable user/password validation for API routes
# CREATED: 14 OCT 2026
# ============================================================================
"""
Gateway Authentication

HTTP Basic auth in front of every API route. Validation is delegated to an
AuthenticationHandler so deployments can plug in their own user source.

Handlers:
    SingleUserAuthenticator   one configured user
    MultiUserAuthenticator    user -> password table from the config file
    ChainedAuthenticator      first handler that accepts wins

When no handler is configured the API is open.
"""

import logging
import secrets
import uuid
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

logger = logging.getLogger(__name__)

REALM = "Authorization Required"

security = HTTPBasic(realm=REALM, auto_error=False)


# ============================================================================
# HANDLERS
# ============================================================================

class AuthenticationHandler(ABC):
    """Validates one user/password pair."""

    @abstractmethod
    def validate(self, user: str, password: str) -> bool:
        """Return True when the credentials are accepted."""


class SingleUserAuthenticator(AuthenticationHandler):
    """Accepts exactly one user."""

    def __init__(self, user: str, password: str):
        self.user = user
        self._password = password

    def validate(self, user: str, password: str) -> bool:
        user_ok = secrets.compare_digest(user.encode(), self.user.encode())
        password_ok = secrets.compare_digest(password.encode(), self._password.encode())
        return user_ok and password_ok


class MultiUserAuthenticator(AuthenticationHandler):
    """Accepts any user in a user -> password table."""

    def __init__(self, users: Dict[str, str]):
        self._users = dict(users)

    def validate(self, user: str, password: str) -> bool:
        expected = self._users.get(user)
        if expected is None:
            return False
        return secrets.compare_digest(password.encode(), expected.encode())


class ChainedAuthenticator(AuthenticationHandler):
    """Tries each handler in order; the first that accepts wins."""

    def __init__(self, handlers: List[AuthenticationHandler]):
        self.handlers = list(handlers)

    def validate(self, user: str, password: str) -> bool:
        return any(handler.validate(user, password) for handler in self.handlers)


def build_authenticator(
    user_name: str,
    user_password: str,
    users: Optional[Dict[str, str]] = None,
) -> Optional[AuthenticationHandler]:
    """
    Build the handler for the configured users.

    A configured user with an empty password gets a generated one,
    logged once so the operator can pick it up.

    Args:
        user_name: Primary user (GATEWAY_USER); empty means none
        user_password: Primary user's password (GATEWAY_PASSWORD)
        users: Extra users from the config file

    Returns:
        Handler, or None for open access
    """
    handlers: List[AuthenticationHandler] = []

    if user_name:
        if not user_password:
            user_password = str(uuid.uuid4())
            logger.warning(
                "******************************\n"
                f"API gateway is set to require {user_name} as user name, but empty "
                f"value as user password. Generated value {user_password} as required password.\n"
                "******************************"
            )
        logger.info(
            f"API gateway will be accessible with required user name {user_name} "
            f"and matching password"
        )
        handlers.append(SingleUserAuthenticator(user_name, user_password))

    if users:
        logger.info(f"API gateway accepts {len(users)} users from config file")
        handlers.append(MultiUserAuthenticator(users))

    if not handlers:
        logger.info("API gateway will be accessible without user name and password")
        return None
    if len(handlers) == 1:
        return handlers[0]
    return ChainedAuthenticator(handlers)


# ============================================================================
# FASTAPI DEPENDENCY
# ============================================================================

_auth_handler: Optional[AuthenticationHandler] = None


def set_auth_handler(handler: Optional[AuthenticationHandler]) -> None:
    """Install the handler used by require_user (None = open access)."""
    global _auth_handler
    _auth_handler = handler


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
    )


def require_user(
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
) -> Optional[str]:
    """
    Dependency guarding API routes.

    Returns:
        Authenticated user name, or None when auth is disabled
    """
    if _auth_handler is None:
        return None

    if credentials is None:
        raise _unauthorized("did not find Authorization header in client request")

    if not _auth_handler.validate(credentials.username, credentials.password):
        logger.warning(f"Failed to validate user password for {credentials.username}")
        raise _unauthorized("invalid user or password")

    return credentials.username


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "REALM",
    "AuthenticationHandler",
    "SingleUserAuthenticator",
    "MultiUserAuthenticator",
    "ChainedAuthenticator",
    "build_authenticator",
    "set_auth_handler",
    "require_user",
]
