# cli/core/session.py
import json
from typing import Optional

from .config import SESSION_FILE


def save_tokens(access_token: str, refresh_token: str) -> None:
    """
    Stores the token pair in the session file (SESSION_FILE).
    """
    data = {"access_token": access_token, "refresh_token": refresh_token}
    with open(SESSION_FILE, "w", encoding="utf-8") as f:
        json.dump(data, f)
    SESSION_FILE.chmod(0o600)


def _load_session() -> dict:
    if not SESSION_FILE.exists():
        return {}

    try:
        with open(SESSION_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        # An unreadable session file counts as no session
        return {}
    return data if isinstance(data, dict) else {}


def load_token() -> Optional[str]:
    """
    Returns the stored access token, or None when there is no session.
    """
    return _load_session().get("access_token")


def load_refresh_token() -> Optional[str]:
    return _load_session().get("refresh_token")


def clear_tokens() -> None:
    """
    Deletes the session file, ending the local session.
    """
    if SESSION_FILE.exists():
        SESSION_FILE.unlink()


def is_logged_in() -> bool:
    return load_token() is not None
