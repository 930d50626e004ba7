#!/usr/bin/env python3
"""Exemplo de programa CGI.

Sob um servidor, lê a requisição do ambiente; pela linha de comando,
emula uma a partir dos argumentos, por exemplo:

    python main.py --method POST --host localhost --port 8080 \
        --script /echo.cgi --content-type application/json --data '{}'
"""
import sys

from cgienv import CgiError, current_request
from cgienv.controller.emulate import describe
from cgienv.utils.logger import Logger

logger = Logger("main")


def application():
    try:
        summary = describe(current_request(sys.argv[1:]))
    except CgiError as e:
        logger.error(str(e))
        print("Status: 500 Internal Server Error")
        print("Content-Type: text/plain\n")
        print(str(e))
        return 1

    print("Content-Type: text/plain\n")
    print(summary)
    return 0


if __name__ == "__main__":
    sys.exit(application())
