import copy
import logging
from logging.config import dictConfig
from typing import Any, Mapping

# Shown in place of request context that a log call did not supply
PLACEHOLDER = "-"


class KeyValueFormatter(logging.Formatter):
    """
    Render the request context attached through ``extra`` as sorted
    ``key=value`` pairs after the message. Placeholder values are left out
    so lines logged outside a request stay short.
    """
    _RESERVED = frozenset(
        logging.LogRecord("", 0, "", 0, "", None, None).__dict__
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)

        context = {
            k: v for k, v in record.__dict__.items()
            if k not in self._RESERVED and v != PLACEHOLDER
        }
        if not context:
            return line
        return f"{line} | " + " ".join(f"{k}={v}" for k, v in sorted(context.items()))


_DEFAULT_LOGGING_CONF = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "kv": {
            "()": KeyValueFormatter,
            "format": "%(asctime)s [%(levelname).1s] %(name)s | %(message)s"
        }
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "kv",
        }
    },
    "loggers": {
        "hardfetch": {"level": "INFO", "handlers": ["stderr"]},
    },
}


def build_logging_config(level: str | int = "INFO", **overrides) -> dict:
    """
    Return a ``dictConfig`` mapping: the defaults with ``overrides`` applied
    per top-level section, and the ``hardfetch`` logger set to ``level``.
    The module defaults are never modified.
    """
    conf = copy.deepcopy(_DEFAULT_LOGGING_CONF)
    for section, value in copy.deepcopy(overrides).items():
        if isinstance(value, dict) and isinstance(conf.get(section), dict):
            conf[section].update(value)
        else:
            conf[section] = value

    conf["loggers"] = conf.get("loggers") or {}
    logger_conf = conf["loggers"].setdefault("hardfetch", {})
    logger_conf["level"] = level
    return conf


def configure_logging(level: str | int = "INFO", **overrides) -> None:
    """
    Configure hardfetch's logger.

    Call this once in an application entry-point **or** rely on defaults.

    Args:
        level (str | int): Level for the ``hardfetch`` logger. Defaults to "INFO".
        **overrides: ``dictConfig`` sections merged over the defaults, e.g.
            ``handlers={...}`` or ``loggers={"aiohttp": {...}}``.
    """
    dictConfig(build_logging_config(level, **overrides))


class RequestAdapter(logging.LoggerAdapter):
    """
    Inject request context (method, url, attempt) so the formatter never
    needs to know client internals.
    """
    def process(self, msg: str, kwargs: Mapping[str, Any]):
        extra = {**self.extra, **kwargs.pop("extra", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str, **ctx) -> RequestAdapter:
    defaults = dict.fromkeys(("method", "url", "attempt"), PLACEHOLDER)
    defaults.update(ctx)
    return RequestAdapter(logging.getLogger(name), defaults)
