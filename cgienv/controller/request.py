import ipaddress
import os
import sys
from enum import Enum
from typing import Mapping, Optional

from cgienv import settings
from cgienv.utils.logger import Logger
from .content import Content, classify
from .errors import InvalidEnvironmentError, InvalidRequestError, UnsupportedMethodError
from .guard import LoadGuard
from .media_type import MediaType
from .url import Url

logger = Logger(__name__)


class Method(Enum):
    OPTIONS = "OPTIONS"
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    TRACE = "TRACE"
    CONNECT = "CONNECT"

    @classmethod
    def parse(cls, value) -> "Method":
        if isinstance(value, Method):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnsupportedMethodError(value) from None

    @property
    def accepts_content(self) -> bool:
        return self in (Method.PUT, Method.POST)


class Request:
    """Representa uma invocação CGI.

    Depois de carregada (load) ou construída (Builder) a requisição não muda:
    todos os campos são expostos como propriedades somente leitura.
    """

    def __init__(self, script: str, full_url: Url, method: Method = Method.GET,
                 http_version: str = settings.DEFAULT_HTTP_VERSION,
                 cgi_version: str = settings.DEFAULT_CGI_VERSION,
                 path_info: Optional[str] = None, path_translated: Optional[str] = None,
                 user: Optional[str] = None, ident: Optional[str] = None,
                 auth: Optional[str] = None, client=settings.DEFAULT_CLIENT,
                 content: Optional[Content] = None):
        if not script:
            raise InvalidRequestError("script must not be empty")
        if user is not None and ident is not None:
            raise InvalidRequestError("user and ident are mutually exclusive")

        self._http_version = http_version
        self._cgi_version = cgi_version
        self._method = Method.parse(method)
        self._full_url = full_url
        self._path_info = path_info
        self._path_translated = path_translated
        self._script = script
        self._user = user
        self._ident = ident
        self._auth = auth
        self._client = client_address(client)
        self._content = None

        self._set_content(content)
        self._update_path()

    @classmethod
    def default(cls) -> "Request":
        """Requisição base da emulação: GET para o próprio script via file://."""
        script = sys.argv[0] if sys.argv and sys.argv[0] else os.getcwd()
        full_url = Url.from_file_path(script)
        return cls(script=full_url.path, full_url=full_url)

    @property
    def http_version(self) -> str:
        return self._http_version

    @property
    def cgi_version(self) -> str:
        return self._cgi_version

    @property
    def method(self) -> Method:
        return self._method

    @property
    def full_url(self) -> Url:
        return self._full_url

    @property
    def path_info(self) -> Optional[str]:
        return self._path_info

    @property
    def path_translated(self) -> Optional[str]:
        return self._path_translated

    @property
    def script(self) -> str:
        return self._script

    @property
    def user(self) -> Optional[str]:
        return self._user

    @property
    def ident(self) -> Optional[str]:
        return self._ident

    @property
    def auth(self) -> Optional[str]:
        return self._auth

    @property
    def client(self):
        return self._client

    @property
    def content(self) -> Optional[Content]:
        return self._content

    @property
    def query(self) -> Optional[str]:
        return self._full_url.query

    def url(self) -> str:
        return str(self._full_url)

    # Mutadores internos, usados apenas pelo Builder antes do build()

    def _set_method(self, method, content=None, keep_content=False):
        self._method = Method.parse(method)
        if keep_content:
            content = self._content if self._method.accepts_content else None
        self._content = None
        self._set_content(content)

    def _set_content(self, content: Optional[Content]):
        if content is not None and not self._method.accepts_content:
            raise InvalidRequestError(f"{self._method.value} requests cannot carry content")
        self._content = content

    def _set_script(self, script: str):
        if not script:
            raise InvalidRequestError("script must not be empty")
        self._script = script
        self._update_path()

    def _set_path_info(self, info: Optional[str], translated: Optional[str]):
        self._path_info = info
        self._path_translated = translated
        self._update_path()

    def _set_identity(self, user: Optional[str] = None, ident: Optional[str] = None,
                      auth: Optional[str] = None):
        self._user = user
        self._ident = ident
        self._auth = auth

    def _update_path(self):
        composite_path = self._script
        if self._path_info is not None:
            composite_path += self._path_info
        self._full_url = self._full_url.replace(path=composite_path)

    def __repr__(self):
        return (
            f"Request(method={self._method.value}, url={self._full_url!r}, "
            f"script={self._script!r}, path_info={self._path_info!r}, "
            f"client={self._client}, content={self._content!r})"
        )


def load(environ: Optional[Mapping[str, str]] = None, stdin=None,
         guard: Optional[LoadGuard] = None) -> Request:
    """Carrega a requisição do ambiente de execução.

    Consome as variáveis CGI e o corpo enviado pelo stdin, então só pode
    ser chamada uma vez por processo; a segunda chamada levanta
    MultipleLoadError.
    """
    guard = guard if guard is not None else LoadGuard()
    guard.acquire()

    if environ is None:
        environ = os.environ

    method = Method.parse(environ.get("REQUEST_METHOD") or "GET")

    script = environ.get("SCRIPT_NAME")
    if not script:
        raise InvalidEnvironmentError("SCRIPT_NAME", "missing or empty")

    user = environ.get("REMOTE_USER") or None
    ident = environ.get("REMOTE_IDENT") or None
    if user and ident:
        logger.warning("Both REMOTE_USER and REMOTE_IDENT are set, keeping REMOTE_USER")
        ident = None

    content = None
    if method.accepts_content:
        if stdin is None:
            stdin = sys.stdin.buffer
        body = _read_body(environ, stdin)
        content = classify(MediaType.parse(environ.get("CONTENT_TYPE")), body)

    request = Request(
        script=script,
        full_url=_server_url(environ),
        method=method,
        http_version=environ.get("SERVER_PROTOCOL") or settings.DEFAULT_HTTP_VERSION,
        cgi_version=environ.get("GATEWAY_INTERFACE") or settings.DEFAULT_CGI_VERSION,
        path_info=environ.get("PATH_INFO") or None,
        path_translated=environ.get("PATH_TRANSLATED") or None,
        user=user,
        ident=ident,
        auth=environ.get("AUTH_TYPE") or None,
        client=_client_address(environ),
        content=content,
    )
    logger.debug(f"Loaded {request!r}")
    return request


def _server_url(environ: Mapping[str, str]) -> Url:
    host = environ.get("SERVER_NAME")
    port = environ.get("SERVER_PORT")
    if not host:
        http_host = environ.get("HTTP_HOST")
        if not http_host:
            raise InvalidEnvironmentError("SERVER_NAME", "missing or empty")
        host, host_port = _split_host_port(http_host)
        port = port or host_port or None

    if environ.get("HTTPS", "").lower() in ("on", "1"):
        scheme = "https"
    else:
        scheme = environ.get("REQUEST_SCHEME") or "http"

    return Url(scheme, host, port or None, query=environ.get("QUERY_STRING") or None)


def client_address(value):
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        raise InvalidRequestError(f"not an IP address: {value!r}") from None


def _split_host_port(http_host: str):
    if http_host.startswith("["):
        end = http_host.find("]")
        if end < 0:
            return http_host, ""
        return http_host[1:end], http_host[end + 1:].lstrip(":")
    if ":" not in http_host:
        return http_host, ""
    host, _, port = http_host.rpartition(":")
    return host, port


def _client_address(environ: Mapping[str, str]):
    addr = environ.get("REMOTE_ADDR")
    if addr:
        try:
            return ipaddress.ip_address(addr)
        except ValueError:
            raise InvalidEnvironmentError("REMOTE_ADDR", f"not an IP address: {addr!r}") from None

    # REMOTE_HOST pode ser um nome de domínio em vez de um endereço
    host = environ.get("REMOTE_HOST")
    if host:
        try:
            return ipaddress.ip_address(host)
        except ValueError:
            logger.warning(f"REMOTE_HOST {host!r} is not an address, using {settings.DEFAULT_CLIENT}")
    return ipaddress.ip_address(settings.DEFAULT_CLIENT)


def _read_body(environ: Mapping[str, str], stdin) -> bytes:
    raw_length = (environ.get("CONTENT_LENGTH") or "").strip()
    if not raw_length:
        return b""
    try:
        length = int(raw_length)
    except ValueError:
        raise InvalidEnvironmentError("CONTENT_LENGTH", f"not an integer: {raw_length!r}") from None
    if length < 0:
        raise InvalidEnvironmentError("CONTENT_LENGTH", f"negative length: {length}")

    body = stdin.read(length) if length else b""
    if len(body) < length:
        logger.warning(f"Expected {length} bytes on stdin, got {len(body)}")
    return body
