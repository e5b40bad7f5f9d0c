"""API key guard for the /tracker routes."""

from fastapi import HTTPException, Header

from goaltracker.config import settings


def _presented_key(x_api_key: str | None, authorization: str | None) -> str | None:
    if x_api_key is not None:
        return x_api_key
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip()
    return None


async def verify_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    authorization: str | None = Header(default=None),
) -> str:
    """Accept the tracker key from X-API-Key or Authorization: Bearer.

    With TRACKER_API_KEY unset the tracker is open (single local user).
    """
    expected = settings.tracker_api_key
    if expected is None:
        return ""

    key = _presented_key(x_api_key, authorization)
    if key is None:
        raise HTTPException(status_code=401, detail="Tracker API key required")
    if key != expected:
        raise HTTPException(status_code=401, detail="Tracker API key rejected")
    return key
