import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
# Transport libraries that log every request or connection event
HTTP_LOGGERS = ("httpx", "httpcore")


def _level(value: str | int) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value}")
    return level


def setup_logging(level: str | int = logging.INFO, stream=None, http_level: str | int = logging.WARNING) -> logging.Handler:
    """Send every record to one stream handler on the root logger.

    `level` accepts names as found in LOG_LEVEL ("debug", "INFO") or ints.
    RPC request traffic from httpx/httpcore is held at `http_level` so a
    5 second poll loop does not flood the output.
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    root = logging.getLogger()
    root.setLevel(_level(level))
    root.handlers.clear()
    root.addHandler(handler)
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(_level(http_level))
    return handler
