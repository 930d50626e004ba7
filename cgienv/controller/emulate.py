"""Emulação do ambiente CGI pela linha de comando.

Quando o programa roda fora de um servidor (sem GATEWAY_INTERFACE), a
requisição é montada com o Builder a partir dos argumentos, e o código
seguinte trata as duas origens da mesma forma.
"""
import argparse
import os
from pathlib import Path
from typing import List, Mapping, Optional

from cgienv import settings
from cgienv.utils.logger import Logger
from .builder import Builder
from .content import classify
from .errors import CgiError
from .media_type import MediaType
from .request import Method, Request, load

logger = Logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cgienv", description="Emulate a CGI request from the command line.")
    parser.add_argument("--method", default="GET", type=str.upper,
                        choices=[m.value for m in Method])
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--script", default=None)
    parser.add_argument("--path-info", nargs=2, metavar=("BASE", "INFO"), default=None)
    parser.add_argument("--query", default=None)
    identity = parser.add_mutually_exclusive_group()
    identity.add_argument("--user", default=None)
    identity.add_argument("--ident", default=None)
    parser.add_argument("--auth", default=None)
    parser.add_argument("--client", default=None)
    parser.add_argument("--http-version", default=None)
    parser.add_argument("--cgi-version", default=None)
    parser.add_argument("--content-type", default=settings.DEFAULT_PART_CONTENT_TYPE)
    body = parser.add_mutually_exclusive_group()
    body.add_argument("--data", default=None)
    body.add_argument("--data-file", type=Path, default=None)
    return parser


def emulate(argv: Optional[List[str]] = None) -> Request:
    parser = build_parser()
    args = parser.parse_args(argv)
    method = Method.parse(args.method)

    data = None
    if args.data is not None:
        data = args.data.encode(settings.DEFAULT_CHARSET)
    elif args.data_file is not None:
        data = args.data_file.read_bytes()
    if data is not None and not method.accepts_content:
        parser.error(f"--data/--data-file require PUT or POST, not {method.value}")

    builder = Builder()
    if args.http_version:
        builder.http_version(args.http_version)
    if args.cgi_version:
        builder.cgi_version(args.cgi_version)
    if args.host:
        builder.host(args.host)
    if args.port is not None:
        builder.port(args.port)
    if args.script:
        builder.script(args.script)
    if args.path_info:
        builder.path_info(*args.path_info)
    if args.query is not None:
        builder.query(args.query)
    if args.user:
        builder.user(args.user, args.auth)
    elif args.ident:
        builder.ident(args.ident, args.auth)
    if args.client:
        try:
            builder.client(args.client)
        except ValueError as e:
            parser.error(str(e))

    content = None
    if data is not None:
        content = classify(MediaType.parse(args.content_type), data)

    if method == Method.POST:
        builder.post(content)
    elif method == Method.PUT:
        builder.put(content)
    else:
        builder.method(method)

    request = builder.build()
    logger.debug(f"Emulated {request!r}")
    return request


def current_request(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None,
                    stdin=None) -> Request:
    """Ponto de entrada único: carrega do ambiente CGI ou emula pela linha de comando."""
    if environ is None:
        environ = os.environ
    if environ.get("GATEWAY_INTERFACE"):
        return load(environ, stdin)
    return emulate(argv)


def describe(request: Request) -> str:
    lines = [
        f"method: {request.method.value}",
        f"url: {request.url()}",
        f"script: {request.script}",
        f"path_info: {request.path_info}",
        f"path_translated: {request.path_translated}",
        f"query: {request.query}",
        f"http_version: {request.http_version}",
        f"cgi_version: {request.cgi_version}",
        f"user: {request.user}",
        f"ident: {request.ident}",
        f"auth: {request.auth}",
        f"client: {request.client}",
    ]
    if request.content is not None:
        lines.append(f"content: {request.content!r}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        summary = describe(current_request(argv))
    except CgiError as e:
        logger.error(str(e))
        return 1
    print(summary)
    return 0
