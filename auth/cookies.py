"""
auth/cookies.py -- Session cookie transport.

The session token travels in an httpOnly cookie. The cookie value is the
token signed with SECRET_KEY (itsdangerous), so a value that was not issued by
this server is rejected before it ever reaches the session store. The token
itself is already unguessable; the signature keeps junk and tampered values
out of the database lookup.

Cookie attributes:
  httponly=True: JS cannot read the cookie (XSS mitigation).
  samesite="lax": not sent on cross-site POST -- CSRF mitigation.
  secure: only sent over HTTPS when SECURE_COOKIES=true.
  max_age: matches the session TTL so cookie and session expire together.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

from itsdangerous import BadSignature, Signer

from core.config import get_settings

_settings = get_settings()

_signer = Signer(_settings.secret_key, salt="sessionauth.session")


def sign_token(token: str) -> str:
    return _signer.sign(token).decode("utf-8")


def unsign_token(value: str | None) -> str | None:
    """Return the token inside a signed cookie value, or None if it does not verify."""
    if not value:
        return None
    try:
        return _signer.unsign(value).decode("utf-8")
    except BadSignature:
        return None


def set_session_cookie(response, token: str) -> None:
    """Write the signed session token as an httpOnly cookie on the response."""
    response.set_cookie(
        _settings.session_cookie_name,
        value=sign_token(token),
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.session_ttl_seconds,
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(
        _settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
    )
