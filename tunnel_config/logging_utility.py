import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, List, Union

if TYPE_CHECKING:
    from .config import LogSettings


TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# vpnc-script LOG_LEVEL numbering
LOG_LEVELS = {
    0: logging.ERROR,
    1: logging.INFO,
    2: logging.DEBUG,
    3: TRACE,
}

LOG_LEVEL_NAMES = {
    "ERROR": logging.ERROR,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": TRACE,
}

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_log_level(value: Union[str, int, None], default: int = logging.INFO) -> int:
    """Map a LOG_LEVEL value (0-3 or a level name) to a logging level."""
    if value is None:
        return default
    text = str(value).strip()
    if not text:
        return default
    if text.isdigit():
        return LOG_LEVELS.get(int(text), default)
    return LOG_LEVEL_NAMES.get(text.upper(), default)


class Logger:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._setup_logger()
        return cls._instance

    def _setup_logger(self):
        self.logger = logging.getLogger('TunnelConfig')
        self.logger.setLevel(logging.INFO)

        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(name)s:%(lineno)d - %(message)s')
        handler.setFormatter(formatter)

        self.logger.addHandler(handler)

    def get_logger(self):
        return self.logger


logger = Logger().get_logger()


class _LineCollector(logging.Handler):
    """Keeps formatted session lines for callers that display them."""

    def __init__(self, lines: List[str]):
        super().__init__()
        self.lines = lines

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(self.format(record))


class SessionLog:
    """
    Leveled log sink for a single lifecycle event.

    Messages below the configured threshold are dropped. Output goes either
    to a rotating log file in the temp directory or to stdout, and every
    emitted line is also kept in ``lines``. Call ``close()`` at the end of
    the event.
    """

    def __init__(self, settings: "LogSettings", name: str = "tunnel_config.session"):
        self.settings = settings
        self.lines: List[str] = []

        self.logger = logging.getLogger(name)
        self.logger.setLevel(settings.level)
        self.logger.propagate = False

        if settings.timestamps:
            formatter = logging.Formatter('[%(asctime)s] %(message)s', datefmt=TIMESTAMP_FORMAT)
        else:
            formatter = logging.Formatter('%(message)s')

        self._log_file: Union[str, None] = None
        output: Union[logging.Handler, None] = None
        if settings.to_file:
            path = os.path.join(settings.directory, settings.filename)
            try:
                os.makedirs(settings.directory, exist_ok=True)
                output = RotatingFileHandler(
                    path,
                    maxBytes=settings.max_bytes,
                    backupCount=settings.backup_count,
                    encoding="utf-8",
                )
                self._log_file = path
            except OSError as e:
                logger.error(f"Cannot open session log {path}, logging to stdout: {str(e)}")
        if output is None:
            output = logging.StreamHandler(sys.stdout)

        self._handlers = [output, _LineCollector(self.lines)]
        for handler in self._handlers:
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    @property
    def log_file(self) -> Union[str, None]:
        """Path of the session log file, or None when logging to stdout."""
        return self._log_file

    def log(self, level: int, message: str) -> None:
        self.logger.log(level, message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def trace(self, message: str) -> None:
        self.logger.log(TRACE, message)

    def close(self) -> None:
        for handler in self._handlers:
            self.logger.removeHandler(handler)
            handler.close()
        self._handlers = []

    def __enter__(self) -> "SessionLog":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
