"""Loopback HTTP listener for the authorization-code redirect.

:class:`CallbackListener` is an async context manager around a
:class:`http.server.HTTPServer` running in a worker thread. The socket is
bound on ``__aenter__``, so callers can open the browser inside the ``async
with`` block without racing the redirect. ``__aexit__`` always shuts the
server down and releases the port, whichever way the block is left.

The first GET on the redirect path is handed to the event loop as a
:class:`CallbackRequest`. The handler thread then blocks until the async side
calls :meth:`CallbackRequest.respond`, so the browser page can report the
real outcome of the token exchange. Requests on other paths (``/favicon.ico``)
get a 404 and are ignored.

Example::

    async with CallbackListener(5000) as listener:
        await open_browser(auth_url)
        request = await listener.wait(timeout=300)
        request.respond(200, SUCCESS_PAGE)
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from spauth.exceptions import AuthTimeoutError, ConfigurationError

logger = logging.getLogger(__name__)

REPLY_TIMEOUT = 60.0
"""Seconds the handler thread waits for the async side to pick a response page."""


def render_page(title: str, body: str = "") -> str:
    paragraph = f"<p>{body}</p>" if body else ""
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{title}</title></head>"
        f"<body><h1>{title}</h1>{paragraph}</body></html>"
    )


class CallbackRequest:
    """The query parameters of the redirect, plus a one-shot reply channel."""

    def __init__(self, params: dict[str, str]) -> None:
        self.params = params
        self._reply: concurrent.futures.Future[tuple[int, str]] = concurrent.futures.Future()

    def get(self, name: str) -> Optional[str]:
        return self.params.get(name)

    @property
    def answered(self) -> bool:
        return self._reply.done()

    def respond(self, status: int, html: str) -> None:
        """Send the page shown in the browser. Only the first call counts."""
        if not self._reply.done():
            self._reply.set_result((status, html))

    def wait_for_reply(self, timeout: float) -> tuple[int, str]:
        try:
            return self._reply.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            return 500, render_page("Authentication Failed", "Sign-in did not complete.")


class _CallbackServer(HTTPServer):
    """HTTPServer carrying the listener that owns it."""

    listener: CallbackListener


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        listener = self.server.listener
        if parsed.path.rstrip("/") != listener.path.rstrip("/"):
            self._write(404, render_page("Not Found"))
            return

        params = {key: values[0] for key, values in parse_qs(parsed.query).items()}
        request = CallbackRequest(params)
        if not listener.deliver(request):
            self._write(409, render_page("Sign-in already handled"))
            return

        status, html = request.wait_for_reply(REPLY_TIMEOUT)
        self._write(status, html)

    def _write(self, status: int, html: str) -> None:
        body = html.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("callback listener: " + format, *args)


class CallbackListener:
    """Scoped loopback server that yields exactly one redirect request.

    Args:
        port: TCP port from the redirect URI.
        path: Path component of the redirect URI.
        host: Interface to bind.
    """

    def __init__(self, port: int, path: str = "/", host: str = "localhost") -> None:
        self.port = port
        self.path = path or "/"
        self.host = host
        self._server: Optional[_CallbackServer] = None
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._future: Optional[asyncio.Future[CallbackRequest]] = None
        self._delivered: Optional[CallbackRequest] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._server is not None

    async def __aenter__(self) -> CallbackListener:
        self._loop = asyncio.get_running_loop()
        self._future = self._loop.create_future()
        try:
            server = _CallbackServer((self.host, self.port), _CallbackHandler)
        except OSError as exc:
            raise ConfigurationError(
                f"Cannot listen for the sign-in redirect on port {self.port}: {exc}"
            ) from exc
        server.listener = self
        self._server = server
        # port 0 asks the OS for a free port
        self.port = server.server_address[1]
        self._thread = threading.Thread(
            target=server.serve_forever,
            kwargs={"poll_interval": 0.1},
            name=f"spauth-callback-{self.port}",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Listening for sign-in redirect on %s:%s", self.host, self.port)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def deliver(self, request: CallbackRequest) -> bool:
        """Hand *request* to the event loop; ``False`` if one was already taken.

        Called from the server thread.
        """
        with self._lock:
            if self._delivered is not None or self._loop is None:
                return False
            self._delivered = request
        self._loop.call_soon_threadsafe(self._resolve, request)
        return True

    def _resolve(self, request: CallbackRequest) -> None:
        if self._future is not None and not self._future.done():
            self._future.set_result(request)

    async def wait(self, timeout: float) -> CallbackRequest:
        """Wait for the redirect.

        Raises:
            AuthTimeoutError: If no redirect arrives within *timeout* seconds.
        """
        assert self._future is not None, "listener is not running"
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), timeout)
        except asyncio.TimeoutError:
            raise AuthTimeoutError(
                f"No sign-in redirect received within {int(timeout)} seconds; run the flow again"
            ) from None

    async def close(self) -> None:
        """Answer any pending request, stop the server, and free the port."""
        if self._delivered is not None and not self._delivered.answered:
            self._delivered.respond(
                500, render_page("Authentication Failed", "Sign-in was interrupted.")
            )
        server, self._server = self._server, None
        if server is not None:
            await asyncio.to_thread(server.shutdown)
            server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        if self._future is not None and not self._future.done():
            self._future.cancel()
        logger.debug("Callback listener on port %s closed", self.port)
