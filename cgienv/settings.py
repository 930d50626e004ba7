import os

DEFAULT_HTTP_VERSION = "HTTP/1.0"
DEFAULT_CGI_VERSION = "CGI/1.1"
DEFAULT_CLIENT = "127.0.0.1"

DEFAULT_CHARSET = "utf-8"
# Corpo sem CONTENT_TYPE é tratado como binário opaco
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_PART_CONTENT_TYPE = "text/plain"

LOG_LEVEL = os.environ.get("CGIENV_LOG_LEVEL", "WARNING").upper()
