"""Request ID middleware.

Echoes the caller's X-Request-Id, or assigns a fresh one when absent, on
every HTTP response.
"""

from __future__ import annotations

import logging
import uuid

logger = logging.getLogger(__name__)


class RequestIdMiddleware:
    def __init__(self, app, header_name: str = "X-Request-Id") -> None:  # type: ignore[no-untyped-def]
        self.app = app
        self.header_name = header_name
        self._header_key = header_name.lower().encode("latin-1")

    def _incoming(self, scope) -> str | None:  # type: ignore[no-untyped-def]
        for key, value in scope.get("headers") or []:
            if key.lower() == self._header_key and value:
                return value.decode("latin-1")
        return None

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = self._incoming(scope) or str(uuid.uuid4())

        async def send_wrapper(message):  # type: ignore[no-untyped-def]
            if message.get("type") == "http.response.start":
                headers = list(message.get("headers") or [])
                if not any(k.lower() == self._header_key for k, _ in headers):
                    headers.append((self.header_name.encode("latin-1"), request_id.encode("latin-1")))
                message = {**message, "headers": headers}
                logger.debug(
                    "request_complete method=%s path=%s status=%s request_id=%s",
                    scope.get("method"), scope.get("path"), message.get("status"), request_id,
                )
            await send(message)

        await self.app(scope, receive, send_wrapper)


__all__ = ["RequestIdMiddleware"]
