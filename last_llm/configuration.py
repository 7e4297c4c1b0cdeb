"""
Settings for last_llm clients.

A ``Configuration`` holds the default provider and model, per-provider
settings, global request settings and the test-mode flag. Clients receive
one explicitly; ``last_llm.get_configuration()`` keeps a process-wide
default for convenience.

Usage::

    from last_llm import Configuration, Client

    config = Configuration(default_provider="anthropic")
    config.configure_provider("anthropic", api_key="sk-ant-...")
    client = Client(config)

Environment variables (read by ``Configuration.from_env``)::

    LAST_LLM_DEFAULT_PROVIDER, LAST_LLM_DEFAULT_MODEL, LAST_LLM_LOG_LEVEL,
    LAST_LLM_TEST_MODE, OPENAI_API_KEY, ANTHROPIC_API_KEY,
    GEMINI_API_KEY / GOOGLE_API_KEY, DEEPSEEK_API_KEY,
    OLLAMA_HOST, OLLAMA_API_KEY
"""

import logging
import os
from typing import Any, Callable, Mapping

from dotenv import load_dotenv

from last_llm.exceptions import ConfigurationError
from last_llm.llm.providers import constants
from last_llm.llm.providers.ollama_provider import check_settings as _ollama_rule
from last_llm.logger import LLMLogger, as_llm_logger


# required: settings that must be present; custom: extra check raising ConfigurationError
PROVIDER_VALIDATIONS: dict[str, dict[str, Any]] = {
    constants.OPENAI: {"required": ["api_key"]},
    constants.ANTHROPIC: {"required": ["api_key"]},
    constants.GOOGLE_GEMINI: {"required": ["api_key"]},
    constants.DEEPSEEK: {"required": ["api_key"]},
    constants.OLLAMA: {"required": [], "custom": _ollama_rule},
    constants.TEST: {"required": []},
}

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

VALID_LOG_LEVELS: tuple[str, ...] = tuple(_LEVELS)

DEFAULT_GLOBALS: dict[str, Any] = {
    "timeout": 60,
    "max_retries": 3,
    "retry_delay": 1,
}

_TRUTHY = ("1", "true", "yes", "on")

# provider -> (setting, environment variables in lookup order)
_ENV_SETTINGS: dict[str, list[tuple[str, tuple[str, ...]]]] = {
    constants.OPENAI: [("api_key", ("OPENAI_API_KEY",))],
    constants.ANTHROPIC: [("api_key", ("ANTHROPIC_API_KEY",))],
    constants.GOOGLE_GEMINI: [("api_key", ("GEMINI_API_KEY", "GOOGLE_API_KEY"))],
    constants.DEEPSEEK: [("api_key", ("DEEPSEEK_API_KEY",))],
    constants.OLLAMA: [("host", ("OLLAMA_HOST",)), ("api_key", ("OLLAMA_API_KEY",))],
}


def _canonical(settings: Mapping[Any, Any] | None) -> dict[str, Any]:
    return {str(key): value for key, value in (settings or {}).items()}


class Configuration:
    """
    Process- or call-site-scoped settings.

    Attributes:
        default_provider: Provider used when a client names none.
        default_model: Model applied to the default provider when its
                       settings name no model.
        globals: Request settings shared by every provider
                 (timeout, max_retries, retry_delay).
    """

    def __init__(
        self,
        default_provider: str = constants.OPENAI,
        default_model: str | None = None,
        test_mode: bool = False,
        logger: "LLMLogger | logging.Logger | None" = None,
        log_level: str = "info",
    ):
        self.default_provider = str(default_provider)
        self.default_model = default_model
        self.globals: dict[str, Any] = dict(DEFAULT_GLOBALS)
        self._test_mode = bool(test_mode)
        self._providers: dict[str, dict[str, Any]] = {}
        self._logger = logger
        self._log_level = "info"
        self.log_level = log_level

    def __repr__(self) -> str:
        return (
            f"Configuration(default_provider={self.default_provider!r}, "
            f"default_model={self.default_model!r}, test_mode={self._test_mode})"
        )

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, settings: Mapping[str, Any]) -> "Configuration":
        """
        Build a configuration from a plain settings map.

        Recognized keys: default_provider, default_model, test_mode,
        log_level, logger, providers (name -> settings) and globals.
        """
        settings = _canonical(settings)
        config = cls(
            default_provider=settings.get("default_provider") or constants.OPENAI,
            default_model=settings.get("default_model"),
            test_mode=bool(settings.get("test_mode", False)),
            logger=settings.get("logger"),
            log_level=settings.get("log_level") or "info",
        )
        for provider, provider_settings in (settings.get("providers") or {}).items():
            config.configure_provider(provider, provider_settings)
        for key, value in _canonical(settings.get("globals")).items():
            config.set_global(key, value)
        return config

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "Configuration":
        """Build a configuration from environment variables (and a ``.env`` file)."""
        load_dotenv(dotenv_path)

        config = cls(
            default_provider=os.getenv("LAST_LLM_DEFAULT_PROVIDER") or constants.OPENAI,
            default_model=os.getenv("LAST_LLM_DEFAULT_MODEL") or None,
            test_mode=os.getenv("LAST_LLM_TEST_MODE", "").lower() in _TRUTHY,
            log_level=os.getenv("LAST_LLM_LOG_LEVEL") or "info",
        )
        for provider, entries in _ENV_SETTINGS.items():
            for setting, variables in entries:
                value = next((os.environ[v] for v in variables if os.environ.get(v)), None)
                if value:
                    config.set_provider_config(provider, setting, value)
        return config

    # ------------------------------------------------------------------
    # Provider settings
    # ------------------------------------------------------------------

    def configure_provider(
        self, provider: str, config: Mapping[str, Any] | None = None, **settings: Any
    ) -> dict[str, Any]:
        """Merge ``config`` and ``settings`` into the provider's settings and return them."""
        merged = self._providers.setdefault(str(provider), {})
        merged.update(_canonical(config))
        merged.update(settings)
        return dict(merged)

    def set_provider_config(self, provider: str, key: str, value: Any) -> None:
        self._providers.setdefault(str(provider), {})[str(key)] = value

    def get_provider_config(self, provider: str, key: str | None = None) -> Any:
        """All settings for ``provider`` (a copy), or the single ``key``."""
        settings = self._providers.get(str(provider), {})
        if key is None:
            return dict(settings)
        return settings.get(str(key))

    def provider_config(self, provider: str) -> dict[str, Any]:
        """Copy of the provider's settings, marked ``skip_validation`` in test mode."""
        config = dict(self._providers.get(str(provider), {}))
        if self._test_mode:
            config["skip_validation"] = True
        return config

    def validate_provider_config(self, provider: str) -> None:
        """
        Check the provider's settings against ``PROVIDER_VALIDATIONS``.

        Raises:
            ConfigurationError: Unknown provider, a required setting is
                                missing, or the provider's custom rule fails.
        """
        if self._test_mode:
            return

        provider = str(provider)
        validation = PROVIDER_VALIDATIONS.get(provider)
        if validation is None:
            raise ConfigurationError(f"Unknown provider: {provider}")

        config = self.provider_config(provider)
        for key in validation.get("required", []):
            if not config.get(key):
                raise ConfigurationError(f"{key.replace('_', ' ')} is required for {provider} provider")

        custom: Callable[[Mapping[str, Any]], None] | None = validation.get("custom")
        if custom is not None:
            custom(config)

    # ------------------------------------------------------------------
    # Globals, test mode, logging
    # ------------------------------------------------------------------

    def set_global(self, key: str, value: Any) -> Any:
        self.globals[str(key)] = value
        return value

    def get_global(self, key: str) -> Any:
        return self.globals.get(str(key))

    @property
    def test_mode(self) -> bool:
        return self._test_mode

    @test_mode.setter
    def test_mode(self, enabled: bool) -> None:
        self._test_mode = bool(enabled)

    @property
    def logger(self) -> "LLMLogger | logging.Logger | None":
        return self._logger

    @logger.setter
    def logger(self, logger: "LLMLogger | logging.Logger | None") -> None:
        self._logger = logger
        self._apply_log_level()

    @property
    def log_level(self) -> str:
        return self._log_level

    @log_level.setter
    def log_level(self, level: str) -> None:
        normalized = str(level).lower()
        if normalized not in _LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {level}. Valid levels are: {', '.join(VALID_LOG_LEVELS)}"
            )
        self._log_level = normalized
        self._apply_log_level()

    def _apply_log_level(self) -> None:
        # Only a logger handed to this configuration follows its level.
        if self._logger is not None:
            as_llm_logger(self._logger).stdlib.setLevel(_LEVELS[self._log_level])
