"""Request body size limit middleware.

Rejects requests whose body exceeds the configured maximum (files per
request times the per-file upload limit, plus form overhead) before the
multipart parser spools anything to disk. Enforces the limit for both
Content-Length and bodies without one (chunked).
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming and background tasks.
"""

from collections.abc import Callable

from fastapi import HTTPException

from thesis_support.middleware._asgi import get_header, send_json_error


async def _send_413(send: Callable, max_bytes: int, actual: int) -> None:
    await send_json_error(
        send,
        413,
        "PAYLOAD_TOO_LARGE",
        f"Request body must be at most {max_bytes} bytes",
        {"max_bytes": max_bytes, "content_length": actual},
    )


def RequestSizeLimitMiddleware(app: Callable, max_bytes: int) -> Callable:
    """Reject requests whose body exceeds max_bytes (Content-Length or streamed). Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        content_length = get_header(scope, "content-length")
        if content_length is not None:
            try:
                length = int(content_length)
            except ValueError:
                length = None
            if length is not None:
                if length > max_bytes:
                    await _send_413(send, max_bytes, length)
                    return
                await app(scope, receive, send)
                return

        # No usable Content-Length: count bytes as they stream through.
        received = 0
        response_started = False

        async def limited_receive() -> dict:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > max_bytes:
                    raise _BodyTooLarge(received)
            return message

        async def tracking_send(message: dict) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await app(scope, limited_receive, tracking_send)
        except _BodyTooLarge as e:
            if not response_started:
                await _send_413(send, max_bytes, e.received)

    return asgi_app


class _BodyTooLarge(HTTPException):
    """Raised inside receive() when the streamed body passes the limit.

    An HTTPException so body parsers that wrap other errors as 400 let it through.
    """

    def __init__(self, received: int) -> None:
        super().__init__(status_code=413, detail="Request body too large")
        self.received = received
