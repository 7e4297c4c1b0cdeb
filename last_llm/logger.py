"""
Centralized logging for last_llm.

Provides a structured logger with methods for provider requests, responses,
API failures and tool calls. The library stays silent until
``configure_logging()`` is called or the host application configures the
``last_llm`` logger itself.
"""

import json
import logging
import os
import sys
from typing import Any


_DEFAULT_LEVEL = os.getenv("LAST_LLM_LOG_LEVEL", "INFO").upper()

_TRUNCATE_AT = 100

logging.getLogger("last_llm").addHandler(logging.NullHandler())


def truncate(text: str, length: int = _TRUNCATE_AT) -> str:
    """Shorten ``text`` for log readability."""
    return text[:length] + "..." if len(text) > length else text


def describe_prompt(prompt: Any) -> str:
    """Render a string prompt or a message list as one short log line."""
    if isinstance(prompt, list):
        return "...".join(truncate(str(m.get("content", ""))) for m in prompt if isinstance(m, dict))
    return truncate(str(prompt))


class LLMLogger:
    """
    Structured logger for last_llm events.

    Wraps Python's standard logging with convenience methods for the events
    a provider emits during a request (request summary, response summary,
    API errors, tool execution).
    """

    def __init__(self, name: str = "last_llm", logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger(name)

    @property
    def stdlib(self) -> logging.Logger:
        return self._logger

    def set_level(self, level: str) -> None:
        self._logger.setLevel(level.upper())

    def is_debug(self) -> bool:
        return self._logger.isEnabledFor(logging.DEBUG)

    def debug(self, msg: str, **kwargs) -> None:
        self._logger.debug(msg, **kwargs)

    def info(self, msg: str, **kwargs) -> None:
        self._logger.info(msg, **kwargs)

    def warning(self, msg: str, **kwargs) -> None:
        self._logger.warning(msg, **kwargs)

    def error(self, msg: str, **kwargs) -> None:
        self._logger.error(msg, **kwargs)

    def request(self, provider: str, model: str | None, prompt: Any, *, kind: str = "text") -> None:
        """Log an outgoing generation request: summary at INFO, prompt at DEBUG."""
        self._logger.info(f"{provider}: Generating {kind} with model: {model}")
        if self.is_debug():
            self._logger.debug(f"{provider}: {kind.capitalize()} prompt: {describe_prompt(prompt)}")

    def response(self, provider: str, text: str) -> None:
        """Log the size of a generated response."""
        self._logger.debug(f"{provider}: Generated response of {len(text)} characters")

    def api_error(self, provider: str, status: int | None, message: str) -> None:
        self._logger.error(f"{provider}: API error (status: {status}): {message}")

    def tool_call(self, tool_name: str, arguments: dict[str, Any]) -> None:
        """Log an incoming tool call before validation."""
        if self.is_debug():
            try:
                args_str = json.dumps(arguments)
            except (TypeError, ValueError):
                args_str = str(arguments)
            self._logger.debug(f"TOOL_CALL  tool={tool_name} args={args_str}")

    def tool_result(self, tool_name: str, result: Any) -> None:
        """Log the outcome of a tool execution."""
        self._logger.debug(f"TOOL_RESULT tool={tool_name} result={truncate(str(result), 200)!r}")


_logger: LLMLogger | None = None


def get_logger() -> LLMLogger:
    """Return the global last_llm logger, creating it on first call."""
    global _logger
    if _logger is None:
        _logger = LLMLogger()
    return _logger


def as_llm_logger(logger: "LLMLogger | logging.Logger | None") -> LLMLogger:
    """Accept either a stdlib logger or an ``LLMLogger``; None means the global one."""
    if logger is None:
        return get_logger()
    if isinstance(logger, LLMLogger):
        return logger
    return LLMLogger(logger=logger)


def configure_logging(
    level: str | None = None,
    log_file: str | None = None,
    fmt: str = "[%(levelname)s] [last_llm] %(message)s",
) -> None:
    """
    Configure the last_llm logger.

    Args:
        level: Log level string ("DEBUG", "INFO", "WARNING", "ERROR").
               Defaults to the LAST_LLM_LOG_LEVEL env var, then "INFO".
        log_file: Optional path to also write logs to a file.
        fmt: Log format string for the console handler.
    """
    effective_level = (level or _DEFAULT_LEVEL).upper()

    logger = logging.getLogger("last_llm")
    logger.setLevel(effective_level)
    logger.handlers.clear()
    logger.propagate = False  # avoid duplicates when root logger is configured

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(fmt))
    logger.addHandler(console)

    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(
            logging.Formatter("%(asctime)s | %(name)s | %(levelname)s | %(message)s")
        )
        logger.addHandler(fh)
