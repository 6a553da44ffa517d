"""Top-level configuration of the output plugin."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field

from .client_config import ClientConfig, parse_client_config
from .controller_config import ControllerConfig, parse_controller_config
from .plugin_config import PluginConfig, parse_plugin_config
from .values import ConfigError, parse_bool

__all__ = ["LogLevel", "Config", "parse_config"]


class LogLevel(enum.Enum):
    """Verbosity of the plugin's own logging."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @classmethod
    def parse(cls, text: str) -> LogLevel:
        """Return the level named by ``text``."""
        try:
            return cls(text)
        except ValueError:
            raise ConfigError(f'unrecognized log level "{text}"') from None

    def __str__(self) -> str:
        return self.value


@dataclass
class Config:
    """Everything the output plugin is configured with."""

    client_config: ClientConfig = field(default_factory=ClientConfig)
    controller_config: ControllerConfig = field(default_factory=ControllerConfig)
    plugin_config: PluginConfig = field(default_factory=PluginConfig)
    log_level: LogLevel = LogLevel.INFO
    pprof: bool = False


def parse_config(cfg: Mapping[str, str]) -> Config:
    """Parse the plugin's string settings into a :class:`Config`."""
    log_level = LogLevel.parse(cfg.get("LogLevel") or "info")

    pprof = False
    raw_pprof = cfg.get("Pprof") or ""
    if raw_pprof:
        try:
            pprof = parse_bool(raw_pprof)
        except ConfigError as exc:
            raise ConfigError(f"invalid value for Pprof, error: {exc}") from exc

    return Config(
        client_config=parse_client_config(cfg),
        controller_config=parse_controller_config(cfg),
        plugin_config=parse_plugin_config(cfg),
        log_level=log_level,
        pprof=pprof,
    )