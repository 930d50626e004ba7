"""Conteúdo processado de requisições PUT e POST.

O corpo é guardado na forma mais adequada ao seu media type: texto para
formulários, JSON, XML e text/*, uma sequência de partes para multipart e
bytes brutos para todo o resto.
"""
import codecs
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import parse_qs

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser

from cgienv import settings
from cgienv.utils.logger import Logger
from .errors import MultipartBoundaryMissingError
from .media_type import MediaType, OCTET_STREAM

logger = Logger(__name__)


class Content:
    """Variante base. Apenas as subclasses abaixo são instanciadas."""

    kind = None

    def __init__(self, media: Optional[MediaType] = None):
        self.media = media

    @property
    def payload(self):
        raise NotImplementedError

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.payload == other.payload

    def __hash__(self):
        return hash((self.kind, self.payload))

    def __repr__(self):
        return f"{type(self).__name__}({self.payload!r})"


class _TextContent(Content):
    def __init__(self, text: str, media: Optional[MediaType] = None):
        super().__init__(media)
        self.text = text

    @property
    def payload(self):
        return self.text


class Form(_TextContent):
    kind = "form"


class Json(_TextContent):
    kind = "json"


class Xml(_TextContent):
    kind = "xml"


class Text(_TextContent):
    kind = "text"


class Multipart(Content):
    kind = "multipart"

    def __init__(self, parts: Sequence[Content] = (), media: Optional[MediaType] = None):
        super().__init__(media)
        self.parts = tuple(parts)

    @property
    def payload(self):
        return self.parts

    def __len__(self):
        return len(self.parts)

    def __iter__(self):
        return iter(self.parts)

    def __getitem__(self, index):
        return self.parts[index]


class Blob(Content):
    kind = "blob"

    def __init__(self, data: bytes, media: Optional[MediaType] = None):
        super().__init__(media)
        self.data = bytes(data)

    @property
    def payload(self):
        return self.data


FORM_ESSENCES = {"application/x-www-form-urlencoded"}
JSON_ESSENCES = {"application/json", "text/json"}
XML_ESSENCES = {"application/xml", "text/xml"}


def classify(media: MediaType, body: bytes) -> Content:
    """Classifica o corpo de acordo com o media type declarado.

    A primeira regra que casar vence: formulário, JSON, XML, multipart,
    text/* e, por fim, Blob. Texto que não decodifica no charset declarado
    vira Blob com os bytes originais intactos.

    Levanta MultipartBoundaryMissingError se um multipart não tiver boundary.
    """
    if media is None:
        media = OCTET_STREAM
    body = bytes(body)

    if media.essence in FORM_ESSENCES:
        return _decode(Form, media, body)
    if media.essence in JSON_ESSENCES or media.suffix == "json":
        return _decode(Json, media, body)
    if media.essence in XML_ESSENCES or media.suffix == "xml":
        return _decode(Xml, media, body)
    if media.type == "multipart":
        return _classify_multipart(media, body)
    if media.type == "text":
        return _decode(Text, media, body)
    return Blob(body, media)


def _decode(variant, media: MediaType, body: bytes) -> Content:
    charset = media.charset or settings.DEFAULT_CHARSET
    try:
        codecs.lookup(charset)
        text = body.decode(charset)
    except LookupError:
        logger.warning(f"Unknown charset {charset!r} for {media.essence}, keeping raw bytes")
        return Blob(body, media)
    except UnicodeDecodeError:
        logger.warning(f"Body is not valid {charset} for {media.essence}, keeping raw bytes")
        return Blob(body, media)
    return variant(text, media)


def _classify_multipart(media: MediaType, body: bytes) -> Content:
    boundary = media.boundary
    if boundary is None:
        raise MultipartBoundaryMissingError(str(media))

    framed = _strip_preamble(body, boundary)
    if _is_empty_multipart(framed, boundary):
        return Multipart((), media)

    try:
        raw_parts = split_multipart(framed, boundary)
    except MultipartParseError as e:
        logger.warning(f"Malformed multipart body for boundary {boundary!r}: {e}")
        return Blob(body, media)

    parts = []
    for headers, part_body in raw_parts:
        part_media = MediaType.parse(headers.get("content-type") or settings.DEFAULT_PART_CONTENT_TYPE)
        parts.append(classify(part_media, part_body))
    return Multipart(parts, media)


def _strip_preamble(body: bytes, boundary: str) -> bytes:
    """Descarta o preâmbulo antes do primeiro delimitador e o epílogo após o delimitador final."""
    delimiter = b"--" + boundary.encode("latin-1")
    closing = delimiter + b"--"
    if body.startswith(delimiter):
        start = 0
    else:
        index = body.find(b"\r\n" + delimiter)
        if index < 0:
            return body
        start = index + 2

    if body.startswith(closing, start):
        return body[start:start + len(closing)]
    end = body.find(b"\r\n" + closing, start)
    if end < 0:
        return body[start:]
    return body[start:end + 2 + len(closing)]


def _is_empty_multipart(body: bytes, boundary: str) -> bool:
    stripped = body.strip()
    return not stripped or stripped == b"--" + boundary.encode("latin-1") + b"--"


def split_multipart(body: bytes, boundary: str) -> List[Tuple[Dict[str, str], bytes]]:
    """Separa um corpo multipart em (cabeçalhos, corpo) por parte, na ordem do fio."""
    parts = []
    state = {}

    def on_part_begin():
        state["headers"] = {}
        state["chunks"] = []
        state["field"] = []
        state["value"] = []

    def on_header_field(data, start, end):
        state["field"].append(data[start:end])

    def on_header_value(data, start, end):
        state["value"].append(data[start:end])

    def on_header_end():
        name = b"".join(state["field"]).decode("latin-1").strip().lower()
        state["headers"][name] = b"".join(state["value"]).decode("latin-1").strip()
        state["field"] = []
        state["value"] = []

    def on_part_data(data, start, end):
        state["chunks"].append(data[start:end])

    def on_part_end():
        parts.append((state["headers"], b"".join(state["chunks"])))

    def on_end():
        state["closed"] = True

    parser = MultipartParser(boundary.encode("latin-1"), {
        "on_part_begin": on_part_begin,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_end": on_end,
    })
    parser.write(body)
    parser.finalize()
    if not state.get("closed"):
        # Sem o delimitador final a última parte ficaria pela metade
        raise MultipartParseError(f"Missing closing boundary --{boundary}--")
    return parts


def decode_form(content: Form, keep_blank_values: bool = True) -> Dict[str, List[str]]:
    """Decodifica um Form em pares chave/valores, como o parse_qs faz com a query string."""
    return parse_qs(content.text, keep_blank_values=keep_blank_values)


__all__ = [
    "Content", "Form", "Json", "Xml", "Text", "Multipart", "Blob",
    "classify", "split_multipart", "decode_form",
]
