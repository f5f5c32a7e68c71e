"""httpx GET returning decoded JSON, with failures mapped to ApiError kinds."""

from __future__ import annotations

import json
from typing import Any

import httpx

from polyhistory.ingestion.errors import ApiError, ErrorKind


def build_client(base_url: str, timeout: float) -> httpx.Client:
    return httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)


def get_json(client: httpx.Client, path: str, params: dict[str, Any] | None = None) -> Any:
    """GET path and return the decoded body. Raises ApiError on any failure."""
    try:
        resp = client.get(path, params=params)
    except httpx.DecodingError as e:
        raise ApiError(f"Undecodable body: {e}", ErrorKind.DECODE, url=path) from e
    except httpx.RequestError as e:
        raise ApiError(f"{type(e).__name__}: {e}", ErrorKind.TRANSPORT, url=path) from e
    url = str(resp.request.url)
    if resp.status_code == 404:
        raise ApiError("Not found", ErrorKind.NOT_FOUND, status_code=404, url=url)
    if resp.status_code == 429:
        raise ApiError("Too many requests", ErrorKind.RATE_LIMITED, status_code=429, url=url)
    if resp.is_error:
        raise ApiError(
            f"HTTP {resp.status_code} {resp.reason_phrase}",
            ErrorKind.HTTP,
            status_code=resp.status_code,
            url=url,
        )
    try:
        return resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ApiError(f"Invalid JSON: {e}", ErrorKind.DECODE, status_code=resp.status_code, url=url) from e
