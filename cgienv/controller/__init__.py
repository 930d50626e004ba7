from cgienv.controller.errors import (
    CgiError, MultipleLoadError, UrlCompositionError, MultipartBoundaryMissingError,
    InvalidEnvironmentError, InvalidRequestError, UnsupportedMethodError, BuilderConsumedError,
)
from cgienv.controller.media_type import MediaType
from cgienv.controller.content import Content, Form, Json, Xml, Text, Multipart, Blob, classify, decode_form
from cgienv.controller.url import Url
from cgienv.controller.guard import LoadGuard
from cgienv.controller.request import Method, Request, load
from cgienv.controller.builder import Builder
from cgienv.controller.emulate import current_request, emulate
