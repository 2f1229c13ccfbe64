"""Echo endpoints: return request bodies as decoded by the body parser."""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from ..dependencies import decoded_body, parse_body
from ..parser import new_json_and_form

router = APIRouter(tags=["echo"])
log = logging.getLogger("uvicorn.error")


@router.post("/user/login", summary="Echo the decoded body")
async def user_login(body: bytes = Depends(decoded_body)) -> Response:
    """Send back the body exactly as the middleware stored it."""
    log.debug("Echoing %d body bytes", len(body))
    return Response(content=body, media_type="application/json")


@router.api_route("/echo", methods=["POST", "PUT", "PATCH"], summary="Echo the body as JSON")
async def echo(request: Request) -> dict:
    """Parse the replayed body with ``request.json()``.

    Gzip bodies arrive here already decompressed, with Content-Encoding
    cleared and Content-Length matching the decoded size.
    """
    raw = await request.body()
    if not raw:
        return {"data": None, "bytes": 0}
    try:
        data = await request.json()
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid JSON: {exc.msg}") from exc
    return {
        "data": data,
        "bytes": len(raw),
        "content_encoding": request.headers.get("content-encoding"),
    }


@router.post("/form", summary="Form or JSON body, parsed per route")
async def form(body: bytes = Depends(parse_body(new_json_and_form()))) -> dict:
    """Accept url-encoded forms as well, transcoded to a JSON object."""
    return {"data": json.loads(body) if body else None}
