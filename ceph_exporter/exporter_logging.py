import datetime
import enum
import logging
import sys

# Define the custom log levels
CRITICAL = logging.CRITICAL
FATAL = CRITICAL
ERROR = logging.ERROR
WARNING = logging.WARNING   # 30
WARN = WARNING
INFO = logging.INFO         # 20
DEBUG = logging.DEBUG       # 10
TRACE = 5
NOTSET = logging.NOTSET

DEFAULT_STREAM_LOG_LEVEL = logging.INFO

custom_levels = {
    'TRACE': TRACE,
}

# Level names accepted by --log-level; "fatal" and "panic" map onto CRITICAL.
level_names = {
    'trace': TRACE,
    'debug': DEBUG,
    'info': INFO,
    'warn': WARNING,
    'warning': WARNING,
    'error': ERROR,
    'fatal': CRITICAL,
    'critical': CRITICAL,
    'panic': CRITICAL,
}


# Custom colors for various logging levels
class COLORS(enum.Enum):
    red = "\033[0;31m"
    green = "\033[0;32m"
    yellow = "\033[0;33m"
    blue = "\033[0;34m"
    bred = "\033[1;31m"
    bblue = "\033[1;34m"
    igrey = "\033[0;90m"
    normal = "\033[0m"


level_to_color_map = {
    ERROR: COLORS.bred,
    CRITICAL: COLORS.bred,
    WARNING: COLORS.yellow,
    INFO: COLORS.normal,
    DEBUG: COLORS.normal,
    TRACE: COLORS.igrey,
}


def get_level_color(level):
    return level_to_color_map.get(level, COLORS.normal).value


def parse_level(level_name):
    """Return the numeric level for a name like ``info`` or ``warn``.

    Raises:
        ValueError: If the name is not a known level.
    """
    if isinstance(level_name, int):
        return level_name
    level = level_names.get(str(level_name).strip().lower())
    if level is None:
        raise ValueError(f"not a valid log level: {level_name!r}")
    return level


def log_level_factory(level_name):
    level_num = custom_levels.get(level_name, logging.NOTSET)

    def log_func(self, message, *args, **kwargs):
        if self.isEnabledFor(level_num):
            # Report the caller of logger.trace(), not this wrapper
            kwargs.setdefault("stacklevel", 2)
            self._log(level_num, message, args, **kwargs)
    return log_func


class ExporterLogger(logging.Logger):
    """Logger with a TRACE level below DEBUG. ``fatal`` is the stdlib alias of ``critical``."""


# Add the custom levels to the logger
for custom_name, custom_num in custom_levels.items():
    logging.addLevelName(custom_num, custom_name)
    setattr(ExporterLogger, custom_name.lower(), log_level_factory(custom_name))


class ColoredStandardFormatter(logging.Formatter):
    def format(self, record):
        formatted_time = f"{datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        color = get_level_color(record.levelno)
        message = f"{color}{formatted_time}|{record.levelname}: {record.getMessage()}{COLORS.normal.value}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class ColoredDebugFormatter(logging.Formatter):
    def format(self, record):
        formatted_time = f"{datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        color = get_level_color(record.levelno)
        message = f"{color}{formatted_time}|{record.levelname}:{record.module}:{record.lineno}: " \
                  f"{record.getMessage()}{COLORS.normal.value}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(name=__name__, stream_log_level=DEFAULT_STREAM_LOG_LEVEL):
    if isinstance(stream_log_level, str):
        stream_log_level = parse_level(stream_log_level)

    _logger = ExporterLogger(name)
    _logger.setLevel(TRACE)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(ColoredStandardFormatter())
    stream_handler.setLevel(stream_log_level)
    _logger.addHandler(stream_handler)

    return _logger


def apply_logging_options(_logger, args):
    if args is None:
        return
    stream_handlers = [h for h in _logger.handlers if not hasattr(h, 'baseFilename')]

    log_level = getattr(args, "log_level", None)
    if not log_level:
        return

    try:
        level = parse_level(log_level)
    except ValueError as e:
        _logger.warning(f"error setting log level: {e}")
        return

    for stream_handler in stream_handlers:
        if level <= DEBUG:
            stream_handler.setFormatter(ColoredDebugFormatter())
        stream_handler.setLevel(level)
