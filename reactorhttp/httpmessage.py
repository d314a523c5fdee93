"""HTTP request and response objects shared by the server and its handlers."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "HTTP/1.1"


def _to_bytes(data: bytes | bytearray | str) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


@dataclass
class HttpRequest:
    """A parsed HTTP request.

    Headers and query parameters keep the first value set for a key;
    later values for the same key are ignored.
    """

    method: str = ""
    path: str = ""
    version: str = DEFAULT_VERSION
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    matches: re.Match | None = None

    def reset(self) -> None:
        """Return the request to its freshly created state."""
        self.method = ""
        self.path = ""
        self.version = DEFAULT_VERSION
        self.body = b""
        self.headers.clear()
        self.params.clear()
        self.matches = None

    def set_header(self, key: str, value: str) -> None:
        """Record a header unless one with this name is already present."""
        self.headers.setdefault(key, value)

    def has_header(self, key: str) -> bool:
        """True if the header is present."""
        return key in self.headers

    def header(self, key: str) -> str:
        """The header's value, or an empty string."""
        return self.headers.get(key, "")

    def set_param(self, key: str, value: str) -> None:
        """Record a query parameter unless it is already present."""
        self.params.setdefault(key, value)

    def has_param(self, key: str) -> bool:
        """True if the query parameter is present."""
        return key in self.params

    def param(self, key: str) -> str:
        """The query parameter's value, or an empty string."""
        return self.params.get(key, "")

    def content_length(self) -> int:
        """The declared body length; 0 without a Content-Length header."""
        if not self.has_header("Content-Length"):
            return 0
        return int(self.header("Content-Length"))

    def close(self) -> bool:
        """True unless the client asked to keep the connection alive."""
        return self.header("Connection") != "keep-alive"


@dataclass
class HttpResponse:
    """An HTTP response under construction.

    Headers keep the first value set for a name, as for requests.
    """

    status: int = 200
    body: bytes = b""
    redirect_url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def redirect(self) -> bool:
        """True once a redirect target has been set."""
        return self.redirect_url is not None

    def reset(self) -> None:
        """Return the response to a plain empty 200."""
        self.status = 200
        self.body = b""
        self.redirect_url = None
        self.headers.clear()

    def set_header(self, key: str, value: str) -> None:
        """Record a header unless one with this name is already present."""
        self.headers.setdefault(key, value)

    def has_header(self, key: str) -> bool:
        """True if the header is present."""
        return key in self.headers

    def header(self, key: str) -> str:
        """The header's value, or an empty string."""
        return self.headers.get(key, "")

    def set_redirect(self, url: str, status: int = 302) -> None:
        """Redirect the client to ``url`` with the given status."""
        self.redirect_url = url
        self.status = status

    def set_body(self, body: bytes | bytearray | str, content_type: str) -> None:
        """Set the body and its Content-Type."""
        self.body = _to_bytes(body)
        self.set_header("Content-Type", content_type)

    def close(self) -> bool:
        """True unless the response keeps the connection alive."""
        return self.header("Connection") != "keep-alive"