# Client manage-booking links.
# The raw token goes to the client (URL / success screen), only its sha256
# is stored on the booking.

import hashlib
import secrets

TOKEN_BYTES = 32


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def generate_manage_token() -> tuple[str, str]:
    """Return (raw, hash). raw is a 64-char hex string."""
    raw = secrets.token_hex(TOKEN_BYTES)
    return raw, hash_token(raw)


def build_manage_url(app_url: str, raw: str) -> str:
    return f"{app_url.rstrip('/')}/manage/{raw}"
