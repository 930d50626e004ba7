import ipaddress
import os
import re
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from .errors import UrlCompositionError

DEFAULT_PORTS = {"http": 80, "https": 443}

_SCHEME = re.compile(r"^[a-z][a-z0-9+.\-]*$")
_FORBIDDEN_HOST_CHARS = set(" \t\r\n#%/:<>?@[\\]^|")
_PATH_SAFE = "/;:@&=+$,!~*'()-._"
_QUERY_SAFE = "/?;:@&=+$,!~*'()%-._"


class Url:
    """URL imutável composta por esquema, host, porta, caminho e query."""

    def __init__(self, scheme: str, host: str = "", port: Optional[int] = None,
                 path: str = "/", query: Optional[str] = None):
        self.scheme = _check_scheme(scheme)
        self.host = _check_host(host)
        self.port = _check_port(port)
        self.path = path if path.startswith("/") else "/" + path
        self.query = query

    @classmethod
    def parse(cls, text: str) -> "Url":
        try:
            parts = urlsplit(text)
            port = parts.port
        except ValueError as e:
            raise UrlCompositionError(f"Invalid URL {text!r}: {e}") from e
        return cls(parts.scheme, parts.hostname or "", port, unquote(parts.path) or "/",
                   parts.query if "?" in text else None)

    @classmethod
    def from_file_path(cls, path) -> "Url":
        try:
            resolved = Path(os.path.abspath(path)).resolve()
            return cls("file", "", None, resolved.as_posix())
        except (OSError, ValueError) as e:
            raise UrlCompositionError(f"Could not create a file URL from {path!r}: {e}") from e

    def replace(self, **changes) -> "Url":
        values = {
            "scheme": self.scheme,
            "host": self.host,
            "port": self.port,
            "path": self.path,
            "query": self.query,
        }
        values.update(changes)
        return Url(**values)

    @property
    def netloc(self) -> str:
        host = self.host
        if ":" in host:
            host = f"[{host}]"
        if self.port is None or DEFAULT_PORTS.get(self.scheme) == self.port:
            return host
        return f"{host}:{self.port}"

    def __str__(self):
        # O host só é exigido ao compor a URL
        if not self.host and self.scheme in DEFAULT_PORTS:
            raise UrlCompositionError(f"A {self.scheme} URL needs a host")
        return self._render()

    def _render(self) -> str:
        path = quote(self.path, safe=_PATH_SAFE)
        query = quote(self.query, safe=_QUERY_SAFE) if self.query is not None else ""
        url = urlunsplit((self.scheme, self.netloc, path, query, ""))
        if self.query == "":
            url += "?"
        return url

    def __eq__(self, other):
        if isinstance(other, Url):
            return self._render() == other._render()
        return NotImplemented

    def __hash__(self):
        return hash(self._render())

    def __repr__(self):
        return f"Url({self._render()!r})"


def _check_scheme(scheme: str) -> str:
    scheme = (scheme or "").lower()
    if not _SCHEME.match(scheme):
        raise UrlCompositionError(f"Invalid URL scheme: {scheme!r}")
    return scheme


def _check_host(host: str) -> str:
    host = (host or "").strip()
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if ":" in host:
        _check_ipv6(host)
        return host.lower()
    if any(c in _FORBIDDEN_HOST_CHARS for c in host):
        raise UrlCompositionError(f"Invalid host: {host!r}")
    return host.lower()


def _check_ipv6(host: str):
    try:
        ipaddress.IPv6Address(host)
    except ValueError as e:
        raise UrlCompositionError(f"Invalid host: {host!r}") from e


def _check_port(port) -> Optional[int]:
    if port is None or port == "":
        return None
    try:
        port = int(port)
    except (TypeError, ValueError) as e:
        raise UrlCompositionError(f"Invalid port: {port!r}") from e
    if not 0 <= port <= 65535:
        raise UrlCompositionError(f"Port out of range: {port}")
    return port
