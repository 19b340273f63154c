"""
Residency Pulse — Admin Gate
Single shared secret, compared in constant time. No users, roles or tokens.
"""
import hmac

from fastapi import Request, HTTPException

from pulse.config import ADMIN_PASSWORD, ADMIN_HEADER


# ============================================================
# SHARED SECRET
# ============================================================
def check_admin_password(candidate, expected=None) -> bool:
    expected = ADMIN_PASSWORD if expected is None else expected
    if not candidate or not expected:
        return False
    return hmac.compare_digest(str(candidate).encode(), str(expected).encode())


# ============================================================
# REQUEST HELPERS
# ============================================================
def _password_from_request(request: Request) -> str:
    return request.headers.get(ADMIN_HEADER, "")


async def require_admin(request: Request) -> bool:
    """Dependency: require the admin password header."""
    expected = getattr(request.app.state, "admin_password", None)
    if not check_admin_password(_password_from_request(request), expected):
        raise HTTPException(401, "Admin password required")
    return True
