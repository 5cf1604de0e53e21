"""Conditional GET support for the feed server.

The ETag is an MD5 digest of the exact response bytes, so identical content
always yields the same validator and any byte change yields a new one.
"""

from __future__ import annotations

import hashlib
from typing import Union

from starlette.requests import Request
from starlette.responses import Response

CACHE_CONTROL = "no-cache"


def generate_etag(body: Union[bytes, str]) -> str:
    """Return a quoted strong ETag for `body`."""
    data = body.encode("utf-8") if isinstance(body, str) else body
    return '"' + hashlib.md5(data, usedforsecurity=False).hexdigest() + '"'


def etag_matches(request: Request, etag: str) -> bool:
    return request.headers.get("if-none-match") == etag


def conditional_response(
    request: Request,
    body: Union[bytes, str],
    media_type: str,
    *,
    etag_enabled: bool = True,
) -> Response:
    """Answer 304 with no body when the client already holds `body`, else 200."""
    data = body.encode("utf-8") if isinstance(body, str) else body
    if not etag_enabled:
        return Response(data, media_type=media_type)

    etag = generate_etag(data)
    headers = {"ETag": etag, "Cache-Control": CACHE_CONTROL}
    if etag_matches(request, etag):
        return Response(status_code=304, headers=headers)
    return Response(data, media_type=media_type, headers=headers)
