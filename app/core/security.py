"""Guest session cookie signing. The cookie carries a random session id plus an HMAC."""
import base64
import hashlib
import hmac
import time
import uuid

from app.core.config import get_settings


# Session token: base64(session_id:timestamp).hmac
def _sign_payload(payload: bytes) -> str:
    settings = get_settings()
    sig = hmac.new(settings.secret_key.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=") + "." + sig


def _verify_sig(payload: bytes, sig: str) -> bool:
    settings = get_settings()
    expected = hmac.new(settings.secret_key.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, sig)


def new_session_id() -> str:
    return uuid.uuid4().hex


def create_session_token(session_id: str) -> str:
    """Create a signed token for the guest session id (for the session cookie)."""
    ts = int(time.time())
    payload = f"{session_id}:{ts}".encode("utf-8")
    return _sign_payload(payload)


def verify_session_token(token: str | None) -> str | None:
    """Verify signed token and return the session id if valid; None otherwise."""
    if not token or "." not in token:
        return None
    try:
        encoded, sig = token.rsplit(".", 1)
        pad = 4 - len(encoded) % 4
        if pad != 4:
            encoded += "=" * pad
        payload = base64.urlsafe_b64decode(encoded)
        if not _verify_sig(payload, sig):
            return None
        session_id, ts = payload.decode("utf-8").split(":", 1)
        if abs(time.time() - int(ts)) > get_settings().session_cookie_max_age:
            return None
        return session_id or None
    except (ValueError, UnicodeDecodeError):
        return None
