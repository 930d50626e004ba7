import logging
import colorlog

from cgienv import settings


class Logger:
    """Logger colorido que escreve em stderr, deixando stdout livre para a resposta CGI."""

    def __init__(self, name: str, level=None):
        self.logger = colorlog.getLogger(name)
        self.logger.setLevel(level if level is not None else _resolve_level(settings.LOG_LEVEL))

        if not self.logger.handlers:
            handler = colorlog.StreamHandler()

            formatter = colorlog.ColoredFormatter(
                '%(log_color)s%(levelname)s:%(name)s:%(message)s',
                log_colors={
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'bold_red',
                }
            )

            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def debug(self, message):
        self.logger.debug(message)

    def info(self, message):
        self.logger.info(message)

    def warning(self, message):
        self.logger.warning(message)

    def error(self, message):
        self.logger.error(message)

    def critical(self, message):
        self.logger.critical(message)


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level
    return logging.WARNING
