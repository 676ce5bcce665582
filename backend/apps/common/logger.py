import logging
from typing import Any, Dict, Optional


class ContextFormatter(logging.Formatter):
    """Formatter that appends bound key/value context as ``| key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        rendered = super().format(record)
        context = getattr(record, "context", None)
        if not context:
            return rendered
        first_line, sep, rest = rendered.partition("\n")
        return f"{first_line} | {render_context(context)}{sep}{rest}"


def render_context(context: Dict[str, Any]) -> str:
    return " ".join(f"{key}={_stringify(value)}" for key, value in context.items())


def _stringify(value: Any) -> str:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return str(value)
    return repr(value)


class AppLogger:
    """Stdlib logger wrapper carrying bound context on every record."""

    def __init__(
        self,
        name: str,
        context: Optional[Dict[str, Any]] = None,
        _logger: Optional[logging.Logger] = None,
    ):
        self._logger = _logger or logging.getLogger(name)
        self._name = name
        self._context = context or {}

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def bind(self, **extra: Any) -> "AppLogger":
        """Return a new logger with ``extra`` merged over the current context."""
        return AppLogger(self._name, {**self._context, **extra}, _logger=self._logger)

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(logging.ERROR, message, context)

    def exception(self, message: str, **context: Any) -> None:
        """Log at ERROR level with the active exception attached."""
        self._log(logging.ERROR, message, context, exc_info=True)

    def _log(
        self, level: int, message: str, context: Dict[str, Any], exc_info: bool = False
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        payload = {**self._context, **context}
        self._logger.log(
            level, message, exc_info=exc_info, extra={"context": payload}, stacklevel=3
        )


def get_logger(name: str) -> AppLogger:
    return AppLogger(name)
