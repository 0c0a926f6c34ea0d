"""Shared test fixtures for spauth.

Provides a scripted identity provider on top of :class:`httpx.MockTransport`,
broker settings suited to tests, and autouse fixtures that reset global
output, factory, and logging state between tests. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import logging
from typing import Any, Union
from urllib.parse import parse_qsl

import httpx
import pytest

from spauth.auth.factory import reset_factory
from spauth.models import BrokerSettings
from spauth.output import OutputFormat, OutputManager, reset_output, set_output


SITE_URL = "https://contoso.sharepoint.com/sites/dev"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the ``spauth`` logger after every test.

    The OutputManager and the Rich logging handler cache references to
    sys.stdout/sys.stderr at creation time. When Typer's CliRunner redirects
    those streams and the test finishes, the cached references become
    stale ("I/O operation on closed file").
    """
    yield
    reset_output()
    reset_factory()
    logger = logging.getLogger("spauth")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Scripted identity provider
# ---------------------------------------------------------------------------


Scripted = Union[httpx.Response, Exception]


class ProviderStub:
    """Identity provider that replays queued responses per endpoint.

    Endpoints are keyed by the last path segment (``token``,
    ``devicecode``). Every request is recorded. A request with nothing
    queued gets a 500 so the test fails loudly.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._queues: dict[str, list[Scripted]] = {}

    def queue(self, endpoint: str, *responses: Scripted) -> None:
        self._queues.setdefault(endpoint, []).extend(responses)

    def token(self, access_token: str = "access-1", **extra: Any) -> None:
        """Queue a successful token response."""
        self.queue("token", httpx.Response(200, json={"access_token": access_token, **extra}))

    def oauth_error(self, endpoint: str, error: str, status_code: int = 400) -> None:
        self.queue(
            endpoint,
            httpx.Response(status_code, json={"error": error, "error_description": error}),
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        queue = self._queues.get(endpoint)
        if not queue:
            return httpx.Response(500, json={"error": "unexpected_request"})
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def requests_to(self, endpoint: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/" + endpoint)]

    def form(self, request: httpx.Request) -> dict[str, str]:
        return dict(parse_qsl(request.content.decode("utf-8")))


@pytest.fixture
def provider() -> ProviderStub:
    return ProviderStub()


@pytest.fixture
def http_client(provider: ProviderStub) -> httpx.AsyncClient:
    """AsyncClient wired to the scripted provider; the mock transport holds no sockets."""
    return httpx.AsyncClient(transport=httpx.MockTransport(provider.handler))


@pytest.fixture
def settings() -> BrokerSettings:
    """Settings with browser launching disabled and a short interactive timeout."""
    return BrokerSettings(open_browser=False, interactive_timeout=5)


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
