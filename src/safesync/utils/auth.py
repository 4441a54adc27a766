"""Request authentication for the HTTP surface.

Two credentials are accepted: one shared bearer token (``SAFESYNC_API_TOKEN``)
and any number of API keys (``SAFESYNC_API_KEYS``). Keys may be labelled as
``caregiver-phone=abc123`` so the label names whoever acknowledged an
emergency; unlabelled keys are reported by their last four characters.
With neither variable set, authentication is off and every caller is
``anonymous``.
"""

import hmac
import os
from typing import Dict

from fastapi import Header, HTTPException, status

ANONYMOUS = "anonymous"
TOKEN_PRINCIPAL = "token"


def _load_api_keys() -> Dict[str, str]:
    """Map of key -> principal name."""
    raw = os.getenv("SAFESYNC_API_KEYS", "").strip()
    keys: Dict[str, str] = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        label, sep, key = entry.partition("=")
        if sep and label.strip() and key.strip():
            keys[key.strip()] = label.strip()
        else:
            keys[entry] = f"api-key:{entry[-4:]}"
    return keys


def _same(given: str, expected: str) -> bool:
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def validate_token_or_key(token: str | None, api_key: str | None) -> str:
    """Return the principal for a raw token or API key, or raise 401."""
    expected = os.getenv("SAFESYNC_API_TOKEN")
    api_keys = _load_api_keys()
    if not expected and not api_keys:
        return ANONYMOUS

    if expected and token and _same(token, expected):
        return TOKEN_PRINCIPAL

    if api_key:
        for key, principal in api_keys.items():
            if _same(api_key, key):
                return principal

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def require_token(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> str:
    """FastAPI dependency: bearer token or ``X-API-Key`` header, resolved to a principal."""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    return validate_token_or_key(token, x_api_key)
