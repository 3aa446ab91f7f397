"""
HTTP Basic access gate for the operator read path.
"""

import secrets
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.security import HTTPBasic

from shared.errors import Unauthorized
from shared.logging import get_logger


class AdminAuthenticator:
    """Checks presented Basic credentials against the single operator identity.

    Usable directly as a FastAPI dependency. Holds no session state. When no
    operator identity is configured every request is refused.
    """

    def __init__(self, username: Optional[str], password: Optional[str], realm: str = "Admin Area"):
        self.username = username or None
        self.password = password or None
        self.realm = realm
        self.logger = get_logger("contact.auth")
        self.security = HTTPBasic(auto_error=False, realm=realm)

    @property
    def configured(self) -> bool:
        return self.username is not None and self.password is not None

    async def __call__(self, request: Request) -> str:
        try:
            credentials = await self.security(request)
        except HTTPException:
            # Malformed Basic header
            credentials = None

        if credentials is None:
            self.logger.info("Admin request without credentials", path=request.url.path)
            raise Unauthorized(self.realm)

        if not self.verify(credentials.username, credentials.password):
            self.logger.warning("Admin authentication failed", path=request.url.path)
            raise Unauthorized(self.realm)

        return credentials.username

    def verify(self, username: str, password: str) -> bool:
        """Exact, constant-time match on both fields."""
        if not self.configured:
            return False
        user_ok = secrets.compare_digest(username.encode("utf-8"), self.username.encode("utf-8"))
        pass_ok = secrets.compare_digest(password.encode("utf-8"), self.password.encode("utf-8"))
        return user_ok and pass_ok
