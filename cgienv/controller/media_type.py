import re
from typing import Dict, Optional

from python_multipart.multipart import parse_options_header

from cgienv import settings

_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


class MediaType:
    """Descritor de um Content-Type: tipo, subtipo e parâmetros (boundary, charset...)."""

    def __init__(self, type: str, subtype: str = "", params: Optional[Dict[str, str]] = None):
        self.type = type.strip().lower()
        self.subtype = subtype.strip().lower()
        self.params = {key.lower(): value for key, value in (params or {}).items()}

    @classmethod
    def parse(cls, header) -> "MediaType":
        if isinstance(header, bytes):
            header = header.decode("latin-1")
        if not header or not header.strip():
            return cls.parse(settings.DEFAULT_CONTENT_TYPE)

        essence, options = parse_options_header(header)
        essence = _text(essence).strip()
        params = {_text(key): _text(value) for key, value in options.items()}

        type, _, subtype = essence.partition("/")
        return cls(type, subtype, params)

    @property
    def essence(self) -> str:
        return f"{self.type}/{self.subtype}"

    @property
    def suffix(self) -> Optional[str]:
        if "+" not in self.subtype:
            return None
        return self.subtype.rsplit("+", 1)[1]

    @property
    def charset(self) -> Optional[str]:
        return self.params.get("charset")

    @property
    def boundary(self) -> Optional[str]:
        return self.params.get("boundary") or None

    def __eq__(self, other):
        if not isinstance(other, MediaType):
            return NotImplemented
        return (self.type, self.subtype, self.params) == (other.type, other.subtype, other.params)

    def __hash__(self):
        return hash((self.type, self.subtype, tuple(sorted(self.params.items()))))

    def __str__(self):
        parts = [self.essence]
        for key, value in self.params.items():
            if not _TOKEN.match(value):
                value = '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
            parts.append(f"{key}={value}")
        return "; ".join(parts)

    def __repr__(self):
        return f"MediaType({str(self)!r})"


def _text(value) -> str:
    # parse_options_header devolve bytes
    if isinstance(value, bytes):
        return value.decode("latin-1")
    return value


TEXT_PLAIN = MediaType("text", "plain")
OCTET_STREAM = MediaType("application", "octet-stream")
