"""Two-method logging contract and its stdlib-backed default."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from sigwarden import constants


@runtime_checkable
class Logger(Protocol):
    def info(self, *args: object) -> None: ...

    def debug(self, *args: object) -> None: ...


def _join(args: tuple[object, ...]) -> str:
    return " ".join(str(a) for a in args)


class StdLogger:
    """Writes ``info`` to a stdlib logger; ``debug`` is dropped unless *verbose*."""

    def __init__(self, logger: logging.Logger | None = None, verbose: bool = False) -> None:
        self._logger = logger or logging.getLogger(constants.LOGGER_NAME)
        self.verbose = verbose

    def info(self, *args: object) -> None:
        self._logger.info(_join(args))

    def debug(self, *args: object) -> None:
        if self.verbose:
            self._logger.debug(_join(args))


class NullLogger:
    def info(self, *args: object) -> None:
        pass

    def debug(self, *args: object) -> None:
        pass


def setup_logging(level: str = constants.LOG_LEVEL, log_file: Path | None = None,
                  foreground: bool = True) -> None:
    handlers: list[logging.Handler] = []
    if log_file is not None:
        handlers.append(logging.FileHandler(str(log_file)))
    if foreground or not handlers:
        handlers.append(logging.StreamHandler())
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=constants.LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
