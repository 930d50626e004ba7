from typing import Optional

from .content import Content
from .errors import BuilderConsumedError
from .request import Method, Request, client_address


class Builder:
    """Monta requisições a partir de componentes.

    Útil para criar requisições de teste e para emular o ambiente CGI pela
    linha de comando. Cada chamada devolve o próprio builder, e build()
    o consome.
    """

    def __init__(self):
        self._request = Request.default()

    def _current(self) -> Request:
        if self._request is None:
            raise BuilderConsumedError()
        return self._request

    def build(self) -> Request:
        request = self._current()
        self._request = None
        return request

    def http_version(self, version: str):
        self._current()._http_version = version
        return self

    def cgi_version(self, version: str):
        self._current()._cgi_version = version
        return self

    def method(self, method):
        """Define o método; conteúdo só sobrevive em PUT e POST."""
        self._current()._set_method(method, keep_content=True)
        return self

    def get(self):
        return self.method(Method.GET)

    def put(self, content: Optional[Content] = None):
        self._current()._set_method(Method.PUT, content)
        return self

    def post(self, content: Optional[Content] = None):
        self._current()._set_method(Method.POST, content)
        return self

    def host(self, host: str):
        request = self._current()
        request._full_url = request._full_url.replace(host=host)
        return self

    def port(self, port: int):
        # Muda também o esquema para http
        request = self._current()
        request._full_url = request._full_url.replace(scheme="http", port=port)
        return self

    def script(self, script: str):
        self._current()._set_script(script)
        return self

    def path_info(self, base: str, info: str):
        self._current()._set_path_info(info, base + info)
        return self

    def user(self, user: str, method: Optional[str] = None):
        """Define o usuário e o tipo de autenticação. Remove qualquer ident."""
        self._current()._set_identity(user=user, auth=method)
        return self

    def ident(self, ident: str, method: Optional[str] = None):
        """Define o ident e o tipo de autenticação. Remove qualquer usuário."""
        self._current()._set_identity(ident=ident, auth=method)
        return self

    def client(self, client):
        self._current()._client = client_address(client)
        return self

    def query(self, query: str):
        request = self._current()
        request._full_url = request._full_url.replace(query=query)
        return self
