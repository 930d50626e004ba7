from cgienv.controller import (
    CgiError, MultipleLoadError, UrlCompositionError, MultipartBoundaryMissingError,
    InvalidEnvironmentError, InvalidRequestError, UnsupportedMethodError, BuilderConsumedError,
    MediaType, Content, Form, Json, Xml, Text, Multipart, Blob, classify, decode_form,
    Url, LoadGuard, Method, Request, load, Builder, current_request, emulate,
)

__version__ = "0.1.0"
