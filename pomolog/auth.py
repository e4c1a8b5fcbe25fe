from __future__ import annotations

from urllib.parse import parse_qsl, urlsplit

from .errors import NotSignedInError


def get_url_params(url: str) -> dict[str, str]:
    """Collect OAuth callback parameters from both the query and the fragment.

    Providers put tokens either in ``?code=...`` or ``#access_token=...``;
    fragment values override query values with the same key.
    """
    parts = urlsplit(url)
    params: dict[str, str] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        params[key] = value
    for key, value in parse_qsl(parts.fragment, keep_blank_values=True):
        params[key] = value
    return params


def require_user_id(user_id: str | None) -> str:
    if user_id is None or not user_id.strip():
        raise NotSignedInError()
    return user_id.strip()
