"""Request routing and response building for the HTTP server."""

from __future__ import annotations

import logging
import os
import re
from typing import Callable

from .httpmessage import HttpRequest, HttpResponse
from .utils import DEFAULT_MIME, is_regular, mime_type, read_file, status_text, valid_path, write_file

logger = logging.getLogger(__name__)

Handler = Callable[[HttpRequest, HttpResponse], None]

DEFAULT_NAME = "httpserver"
INDEX_FILE = "/index.html"
_METHODS = ("GET", "POST", "PUT", "DELETE", "HEAD")


class HttpServer:
    """Routes requests to static files or to handlers chosen by path regex."""

    def __init__(self, name: str = DEFAULT_NAME, base_dir: str = "") -> None:
        self.name = name
        self.base_dir = base_dir
        self._routes: dict[str, list[tuple[re.Pattern, Handler]]] = {
            method: [] for method in _METHODS
        }

    def _add(self, method: str, pattern: str, handler: Handler) -> None:
        self._routes[method].append((re.compile(pattern), handler))

    def get(self, pattern: str, handler: Handler) -> None:
        """Handle GET requests whose whole path matches ``pattern``."""
        self._add("GET", pattern, handler)

    def post(self, pattern: str, handler: Handler) -> None:
        """Handle POST requests whose whole path matches ``pattern``."""
        self._add("POST", pattern, handler)

    def delete(self, pattern: str, handler: Handler) -> None:
        """Handle DELETE requests whose whole path matches ``pattern``."""
        self._add("DELETE", pattern, handler)

    def put(self, pattern: str, handler: Handler) -> None:
        """Handle PUT requests whose whole path matches ``pattern``."""
        self._add("PUT", pattern, handler)

    def head(self, pattern: str, handler: Handler) -> None:
        """Handle HEAD requests whose whole path matches ``pattern``."""
        self._add("HEAD", pattern, handler)

    def _static_path(self, request: HttpRequest) -> str | None:
        if not self.base_dir:
            return None
        if not valid_path(request.path):
            return None
        if request.method not in ("GET", "HEAD"):
            return None
        relative = INDEX_FILE if request.path in ("", "/") else request.path
        full = self.base_dir + relative
        return full if is_regular(full) else None

    def is_static(self, request: HttpRequest) -> bool:
        """True if the request names a regular file under the base directory."""
        return self._static_path(request) is not None

    def _serve_static(self, request: HttpRequest, response: HttpResponse) -> None:
        try:
            response.body = read_file(request.path)
        except OSError as exc:
            logger.error("cannot read %s: %s", request.path, exc)
            return
        response.set_header("Content-Length", str(len(response.body)))
        response.set_header("Content-Type", mime_type(request.path))

    @staticmethod
    def _dispatch(
        request: HttpRequest,
        response: HttpResponse,
        routes: list[tuple[re.Pattern, Handler]],
    ) -> None:
        for pattern, handler in routes:
            match = pattern.fullmatch(request.path)
            if match is None:
                continue
            request.matches = match
            handler(request, response)
            return
        response.status = 404

    def route(self, request: HttpRequest, response: HttpResponse) -> None:
        """Serve a static file or call the matching handler; 404/405 otherwise."""
        logger.debug("routing %s %s", request.method, request.path)
        full = self._static_path(request)
        if full is not None:
            request.path = full
            self._serve_static(request, response)
            return
        routes = self._routes.get(request.method)
        if routes is None:
            response.status = 405
            return
        self._dispatch(request, response, routes)

    def error_page(self, response: HttpResponse) -> None:
        """Fill the response body with an HTML page naming its status."""
        body = (
            "<html><head>"
            "<meta http-equiv='Content-Type' content='text/html;charset=utf-8'>"
            "</head><body><h1>"
            f"{response.status} {status_text(response.status)}"
            "</h1></body></html>"
        )
        response.set_body(body, "text/html")

    def build_response(self, request: HttpRequest, response: HttpResponse) -> bytes:
        """Complete the response headers and return the bytes to send."""
        if response.body:
            response.set_header("Content-Length", str(len(response.body)))
            response.set_header("Content-Type", DEFAULT_MIME)
        response.set_header("Connection", "close" if request.close() else "keep-alive")
        if response.redirect_url is not None:
            response.set_header("Location", response.redirect_url)
        lines = [f"{request.version} {response.status} {status_text(response.status)}\r\n"]
        lines.extend(f"{key}: {value}\r\n" for key, value in response.headers.items())
        lines.append("\r\n")
        return "".join(lines).encode("utf-8") + response.body


def request_text(request: HttpRequest) -> str:
    """Render a request back into text, parameters listed before headers."""
    lines = [f"{request.method} {request.path} {request.version}\r\n"]
    lines.extend(f"{key}: {value}\r\n" for key, value in request.params.items())
    lines.extend(f"{key}: {value}\r\n" for key, value in request.headers.items())
    lines.append("\r\n")
    lines.append(request.body.decode("utf-8", errors="replace"))
    return "".join(lines)


def _echo_handler(suffix: str) -> Handler:
    def handler(request: HttpRequest, response: HttpResponse) -> None:
        response.set_body(request_text(request) + suffix, "text/plain")

    return handler


def build_demo_server(base_dir: str = "WWWROOT") -> HttpServer:
    """A server with the sample routes: each echoes the request or stores a PUT body."""
    server = HttpServer(base_dir=base_dir)

    def put_file(request: HttpRequest, response: HttpResponse) -> None:
        write_file(os.path.join(base_dir, request.path.lstrip("/")), request.body)

    def head_only(request: HttpRequest, response: HttpResponse) -> None:
        logger.info("HEAD %s", request.path)

    server.delete("/DELETE", _echo_handler("DeleteMetheod"))
    server.put("/1234.txt", put_file)
    server.post("/POST", _echo_handler("PostMetheod"))
    server.get("/GET", _echo_handler("GetMetheod"))
    server.head("/Head", head_only)
    return server