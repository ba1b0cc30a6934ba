"""
auth.py — Single shared admin password, remembered with a session cookie.

ADMIN_PASSWORD is read on every login attempt so it can be rotated without a
restart.  The cookie carries no secret: it only marks the browser as logged in.
"""

import logging
import os
from typing import Optional

from fastapi import Cookie, HTTPException

logger = logging.getLogger(__name__)

SESSION_COOKIE = "admin_session"


def check_password(password: Optional[str]) -> tuple[bool, str]:
    """(ok, message) for a login attempt."""
    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.error("[auth] ADMIN_PASSWORD is not set in environment variables")
        return False, "System configuration error. Please contact admin."
    if password == admin_password:
        return True, "Logged in"
    logger.warning("[auth] invalid admin password attempt")
    return False, "Invalid Password"


def cookie_is_secure() -> bool:
    return os.getenv("ENVIRONMENT", "development") == "production"


def require_admin(admin_session: Optional[str] = Cookie(default=None)) -> None:
    """FastAPI dependency guarding the /api/admin routes."""
    if not admin_session:
        raise HTTPException(status_code=401, detail="Admin login required")
