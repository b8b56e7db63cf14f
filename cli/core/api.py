import os
from typing import Optional

import requests

from .config import BASE_URL, CA_CERT
from .session import load_refresh_token, load_token, save_tokens


class APIError(Exception):
    """
    Failure reported by the API (or by the transport), with the server's error code.
    """

    def __init__(self, message: str, code: str = "API_ERROR", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


# Get verify setting - use CA cert if exists, else True (system certs)
def _get_verify():
    if CA_CERT and os.path.exists(CA_CERT):
        return CA_CERT
    return True


def _request(method: str, path: str, token: Optional[str] = None, timeout: int = 10, **kwargs) -> dict:
    url = f"{BASE_URL}{path}"
    headers = kwargs.pop("headers", {})
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        resp = requests.request(method, url, headers=headers, verify=_get_verify(), timeout=timeout, **kwargs)
    except requests.RequestException as e:
        raise APIError(f"Could not reach {BASE_URL}: {e}", code="CONNECTION_ERROR")

    try:
        data = resp.json()
    except ValueError:
        data = {}

    if not resp.ok:
        raise APIError(
            data.get("error", f"HTTP {resp.status_code}"),
            code=data.get("code", f"HTTP_{resp.status_code}"),
            status_code=resp.status_code,
        )
    return data


def _save_pair(data: dict) -> dict:
    tokens = data.get("tokens") or {}
    save_tokens(tokens["accessToken"], tokens["refreshToken"])
    return data


def api_register(email: str, password: str, name: Optional[str] = None, bio: Optional[str] = None) -> dict:
    """
    Registers a new account and stores the returned token pair.
    """
    body = {"email": email, "password": password}
    if name:
        body["name"] = name
    if bio:
        body["bio"] = bio
    return _save_pair(_request("POST", "/api/auth/register", json=body))


def api_login(email: str, password: str) -> dict:
    """
    Logs in and stores the returned token pair.
    """
    return _save_pair(_request("POST", "/api/auth/login", json={"email": email, "password": password}))


def api_refresh(refresh_token: str) -> dict:
    """
    Rotates the refresh token. The old one is invalid once this returns.
    """
    return _save_pair(_request("POST", "/api/auth/refresh", json={"refreshToken": refresh_token}))


def api_logout(refresh_token: Optional[str]) -> bool:
    body = {"refreshToken": refresh_token} if refresh_token else {}
    try:
        _request("POST", "/api/auth/logout", json=body, timeout=5)
        return True
    except APIError:
        return False


def _authorized(method: str, path: str, **kwargs) -> dict:
    """
    Calls a protected endpoint with the stored access token.
    On TOKEN_EXPIRED it rotates the refresh token once and retries.
    """
    token = load_token()
    if not token:
        raise APIError("No active session. Please login first.", code="TOKEN_MISSING")

    try:
        return _request(method, path, token=token, **kwargs)
    except APIError as e:
        refresh_token = load_refresh_token()
        if e.code != "TOKEN_EXPIRED" or not refresh_token:
            raise

    data = api_refresh(refresh_token)
    return _request(method, path, token=data["tokens"]["accessToken"], **kwargs)


def api_get_profile() -> dict:
    return _authorized("GET", "/api/user/profile")["user"]


def api_update_profile(changes: dict) -> dict:
    return _authorized("PUT", "/api/user/profile", json=changes)["user"]


def api_delete_account() -> bool:
    _authorized("DELETE", "/api/user/account")
    return True
