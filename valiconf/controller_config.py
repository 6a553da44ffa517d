"""Settings of the controller that manages per-cluster clients."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import timedelta

from .values import ConfigError, parse_bool, parse_duration

__all__ = [
    "ControllerClientConfiguration",
    "ControllerConfig",
    "SEED_CONTROLLER_CLIENT_CONFIG",
    "SHOOT_CONTROLLER_CLIENT_CONFIG",
    "parse_controller_client_config",
    "parse_controller_config",
]


@dataclass(frozen=True)
class ControllerClientConfiguration:
    """Which cluster states allow logs to be sent to a client."""

    send_logs_when_is_in_creation_state: bool = False
    send_logs_when_is_in_ready_state: bool = False
    send_logs_when_is_in_hibernating_state: bool = False
    send_logs_when_is_in_hibernated_state: bool = False
    send_logs_when_is_in_waking_state: bool = False
    send_logs_when_is_in_deletion_state: bool = False
    send_logs_when_is_in_deleted_state: bool = False
    send_logs_when_is_in_restore_state: bool = False
    send_logs_when_is_in_migration_state: bool = False


SEED_CONTROLLER_CLIENT_CONFIG = ControllerClientConfiguration(
    send_logs_when_is_in_creation_state=True,
    send_logs_when_is_in_ready_state=False,
    send_logs_when_is_in_hibernating_state=False,
    send_logs_when_is_in_hibernated_state=False,
    send_logs_when_is_in_waking_state=False,
    send_logs_when_is_in_deletion_state=True,
    send_logs_when_is_in_deleted_state=True,
    send_logs_when_is_in_restore_state=True,
    send_logs_when_is_in_migration_state=True,
)

SHOOT_CONTROLLER_CLIENT_CONFIG = ControllerClientConfiguration(
    send_logs_when_is_in_creation_state=True,
    send_logs_when_is_in_ready_state=True,
    send_logs_when_is_in_hibernating_state=False,
    send_logs_when_is_in_hibernated_state=False,
    send_logs_when_is_in_waking_state=True,
    send_logs_when_is_in_deletion_state=True,
    send_logs_when_is_in_deleted_state=True,
    send_logs_when_is_in_restore_state=True,
    send_logs_when_is_in_migration_state=True,
)


@dataclass
class ControllerConfig:
    """Configuration of the client controller."""

    ctl_sync_timeout: timedelta = timedelta(seconds=60)
    dynamic_host_prefix: str = ""
    dynamic_host_suffix: str = ""
    deleted_client_time_expiration: timedelta = timedelta(hours=1)
    shoot_controller_client_config: ControllerClientConfiguration = field(
        default_factory=lambda: SHOOT_CONTROLLER_CLIENT_CONFIG
    )
    seed_controller_client_config: ControllerClientConfiguration = field(
        default_factory=lambda: SEED_CONTROLLER_CLIENT_CONFIG
    )


# The waking state has no configuration key of its own.
_CONFIGURABLE_STATES = (
    "creation",
    "ready",
    "hibernating",
    "hibernated",
    "deletion",
    "deleted",
    "restore",
    "migration",
)


def _get(cfg: Mapping[str, str], key: str) -> str:
    return cfg.get(key) or ""


def _apply_overrides(
    cfg: Mapping[str, str], base: ControllerClientConfiguration, key_template: str
) -> ControllerClientConfiguration:
    changes = {}
    for state in _CONFIGURABLE_STATES:
        key = key_template.format(state.capitalize())
        raw = _get(cfg, key)
        if raw:
            try:
                changes[f"send_logs_when_is_in_{state}_state"] = parse_bool(raw)
            except ConfigError as exc:
                raise ConfigError(f"invalid value for {key}, error: {exc}") from exc
    return replace(base, **changes)


def parse_controller_client_config(
    cfg: Mapping[str, str],
) -> tuple[ControllerClientConfiguration, ControllerClientConfiguration]:
    """Read the per-state send flags; returns ``(shoot, seed)`` configurations."""
    shoot = _apply_overrides(
        cfg, SHOOT_CONTROLLER_CLIENT_CONFIG, "SendLogsToMainClusterWhenIs{}State"
    )
    seed = _apply_overrides(
        cfg, SEED_CONTROLLER_CLIENT_CONFIG, "SendLogsToDefaultClientWhenClusterIs{}State"
    )
    return shoot, seed


def parse_controller_config(cfg: Mapping[str, str]) -> ControllerConfig:
    """Build a :class:`ControllerConfig` from string settings."""
    raw_timeout = _get(cfg, "ControllerSyncTimeout")
    if raw_timeout:
        try:
            ctl_sync_timeout = parse_duration(raw_timeout)
        except ConfigError as exc:
            raise ConfigError(
                f"failed to parse ControllerSyncTimeout: {raw_timeout} : {exc}"
            ) from exc
    else:
        ctl_sync_timeout = timedelta(seconds=60)

    raw_expiration = _get(cfg, "DeletedClientTimeExpiration")
    if raw_expiration:
        try:
            expiration = parse_duration(raw_expiration)
        except ConfigError as exc:
            raise ConfigError(
                f"failed to parse DeletedClientTimeExpiration: {raw_expiration}"
            ) from exc
    else:
        expiration = timedelta(hours=1)

    shoot, seed = parse_controller_client_config(cfg)
    return ControllerConfig(
        ctl_sync_timeout=ctl_sync_timeout,
        dynamic_host_prefix=_get(cfg, "DynamicHostPrefix"),
        dynamic_host_suffix=_get(cfg, "DynamicHostSuffix"),
        deleted_client_time_expiration=expiration,
        shoot_controller_client_config=shoot,
        seed_controller_client_config=seed,
    )