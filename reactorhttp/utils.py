"""HTTP helper functions: URL coding, status texts, MIME types and file access."""

from __future__ import annotations

import logging
import os
import string

logger = logging.getLogger(__name__)

MAX_LINE_SIZE = 8192
DEFAULT_TIMEOUT = 30

_STATUS_TEXT = {
    100: "Continue",
    101: "Switching Protocol",
    102: "Processing",
    103: "Early Hints",
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    207: "Multi-Status",
    208: "Already Reported",
    226: "IM Used",
    300: "Multiple Choice",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    306: "unused",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    417: "Expectation Failed",
    418: "I'm a teapot",
    421: "Misdirected Request",
    422: "Unprocessable Entity",
    423: "Locked",
    424: "Failed Dependency",
    425: "Too Early",
    426: "Upgrade Required",
    428: "Precondition Required",
    429: "Too Many Requests",
    431: "Request Header Fields Too Large",
    451: "Unavailable For Legal Reasons",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    508: "Loop Detected",
    510: "Not Extended",
    511: "Network Authentication Required",
}

_MIME_TYPES = {
    ".aac": "audio/aac",
    ".abw": "application/x-abiword",
    ".arc": "application/x-freearc",
    ".avi": "video/x-msvideo",
    ".azw": "application/vnd.amazon.ebook",
    ".bin": "application/octet-stream",
    ".bmp": "image/bmp",
    ".bz": "application/x-bzip",
    ".bz2": "application/x-bzip2",
    ".csh": "application/x-csh",
    ".css": "text/css",
    ".csv": "text/csv",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".eot": "application/vnd.ms-fontobject",
    ".epub": "application/epub+zip",
    ".gif": "image/gif",
    ".htm": "text/html",
    ".html": "text/html",
    ".ico": "image/vnd.microsoft.icon",
    ".ics": "text/calendar",
    ".jar": "application/java-archive",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".js": "text/javascript",
    ".json": "application/json",
    ".jsonld": "application/ld+json",
    ".mid": "audio/midi",
    ".midi": "audio/x-midi",
    ".mjs": "text/javascript",
    ".mp3": "audio/mpeg",
    ".mpeg": "video/mpeg",
    ".mpkg": "application/vnd.apple.installer+xml",
    ".odp": "application/vnd.oasis.opendocument.presentation",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    ".odt": "application/vnd.oasis.opendocument.text",
    ".oga": "audio/ogg",
    ".ogv": "video/ogg",
    ".ogx": "application/ogg",
    ".otf": "font/otf",
    ".png": "image/png",
    ".pdf": "application/pdf",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".rar": "application/x-rar-compressed",
    ".rtf": "application/rtf",
    ".sh": "application/x-sh",
    ".svg": "image/svg+xml",
    ".swf": "application/x-shockwave-flash",
    ".tar": "application/x-tar",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".ttf": "font/ttf",
    ".txt": "text/plain",
    ".vsd": "application/vnd.visio",
    ".wav": "audio/wav",
    ".weba": "audio/webm",
    ".webm": "video/webm",
    ".webp": "image/webp",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".xhtml": "application/xhtml+xml",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xml": "application/xml",
    ".xul": "application/vnd.mozilla.xul+xml",
    ".zip": "application/zip",
    ".3gp": "video/3gpp",
    ".3g2": "video/3gpp2",
    ".7z": "application/x-7z-compressed",
}

DEFAULT_MIME = "application/octet-stream"

# RFC 3986 unreserved characters are never percent-encoded.
_UNRESERVED = frozenset((string.ascii_letters + string.digits + ".-_~").encode("ascii"))


def split(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep``, dropping empty pieces."""
    if not sep or not text:
        return []
    return [piece for piece in text.split(sep) if piece]


def write_file(filename: str | os.PathLike, data: bytes | str) -> None:
    """Write ``data`` to ``filename``, replacing any previous content."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    with open(filename, "wb") as fh:
        fh.write(data)
    logger.debug("wrote %d bytes to %s", len(data), filename)


def read_file(filename: str | os.PathLike) -> bytes:
    """Return the whole content of ``filename``."""
    with open(filename, "rb") as fh:
        return fh.read()


def encode_url(url: str, encode_space: bool = True) -> str:
    """Percent-encode ``url``; with ``encode_space`` spaces become ``+``."""
    out = []
    for byte in url.encode("utf-8"):
        if byte in _UNRESERVED:
            out.append(chr(byte))
        elif byte == 0x20 and encode_space:
            out.append("+")
        else:
            out.append(f"%{byte:02X}")
    return "".join(out)


def hex_to_int(ch: str) -> int:
    """Return the value of one hexadecimal digit."""
    if len(ch) != 1 or ch not in string.hexdigits:
        raise ValueError(f"not a hexadecimal digit: {ch!r}")
    return int(ch, 16)


def decode_url(url: str, decode_space: bool = True) -> str:
    """Undo percent-encoding; with ``decode_space`` ``+`` becomes a space."""
    out = bytearray()
    size = len(url)
    pos = 0
    while pos < size:
        ch = url[pos]
        if ch == "+" and decode_space:
            out += b" "
        elif ch == "%" and pos + 2 < size + 0 and pos + 2 <= size - 1:
            out.append(hex_to_int(url[pos + 1]) * 16 + hex_to_int(url[pos + 2]))
            pos += 2
        else:
            out += ch.encode("utf-8")
        pos += 1
    return out.decode("utf-8", errors="replace")


def status_text(code: int) -> str:
    """Return the reason phrase for an HTTP status code, or ``"unknown"``."""
    return _STATUS_TEXT.get(code, "unknown")


def mime_type(filename: str) -> str:
    """Return the MIME type for ``filename`` judged by its extension."""
    dot = filename.rfind(".")
    if dot < 0:
        return DEFAULT_MIME
    return _MIME_TYPES.get(filename[dot:], DEFAULT_MIME)


def is_regular(path: str | os.PathLike) -> bool:
    """True if ``path`` names a regular file."""
    return os.path.isfile(path)


def is_directory(path: str | os.PathLike) -> bool:
    """True if ``path`` names a directory."""
    return os.path.isdir(path)


def valid_path(path: str) -> bool:
    """True if ``path`` never climbs above its root through ``..``."""
    level = 0
    for part in split(path, "/"):
        level += -1 if part == ".." else 1
        if level < 0:
            return False
    return True