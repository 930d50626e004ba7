class CgiError(Exception):
    """Erro base para falhas ao montar uma requisição CGI."""


class MultipleLoadError(CgiError):
    def __init__(self):
        super().__init__("Multiple attempts were made to load the request.")


class UrlCompositionError(CgiError, ValueError):
    """O ambiente fornece esquema, host, porta ou caminho que não formam uma URL válida."""


class MultipartBoundaryMissingError(CgiError, ValueError):
    def __init__(self, media_type: str):
        self.media_type = media_type
        super().__init__(f"Multipart content type has no boundary parameter: {media_type}")


class InvalidEnvironmentError(CgiError):
    def __init__(self, variable: str, reason: str):
        self.variable = variable
        super().__init__(f"{variable}: {reason}")


class UnsupportedMethodError(CgiError, ValueError):
    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unsupported request method: {method!r}")


class BuilderConsumedError(CgiError):
    def __init__(self):
        super().__init__("Builder was already consumed by build()")


class InvalidRequestError(CgiError, ValueError):
    """Valores que violam os invariantes da requisição (script vazio, conteúdo fora de PUT/POST...)."""
