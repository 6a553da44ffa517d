from dataclasses import replace
from datetime import timedelta

import pytest

from valiconf.controller_config import (
    SEED_CONTROLLER_CLIENT_CONFIG,
    SHOOT_CONTROLLER_CLIENT_CONFIG,
    ControllerClientConfiguration,
    ControllerConfig,
    parse_controller_client_config,
    parse_controller_config,
)
from valiconf.values import ConfigError

STATES = [
    "creation",
    "ready",
    "hibernating",
    "hibernated",
    "deletion",
    "deleted",
    "restore",
    "migration",
]


def test_default_controller_config():
    result = parse_controller_config({})
    assert result == ControllerConfig(
        ctl_sync_timeout=timedelta(seconds=60),
        dynamic_host_prefix="",
        dynamic_host_suffix="",
        deleted_client_time_expiration=timedelta(hours=1),
        shoot_controller_client_config=SHOOT_CONTROLLER_CLIENT_CONFIG,
        seed_controller_client_config=SEED_CONTROLLER_CLIENT_CONFIG,
    )


def test_default_dataclass_matches_parsed_defaults():
    assert ControllerConfig() == parse_controller_config({})


def test_shoot_defaults():
    assert SHOOT_CONTROLLER_CLIENT_CONFIG == ControllerClientConfiguration(
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


def test_seed_defaults():
    assert SEED_CONTROLLER_CLIENT_CONFIG == ControllerClientConfiguration(
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


def test_dynamic_host_settings():
    result = parse_controller_config(
        {
            "DynamicHostPrefix": "http://vali.",
            "DynamicHostSuffix": ".svc:3100/vali/api/v1/push",
        }
    )
    assert result.dynamic_host_prefix == "http://vali."
    assert result.dynamic_host_suffix == ".svc:3100/vali/api/v1/push"


def test_durations_are_read():
    result = parse_controller_config(
        {"ControllerSyncTimeout": "30s", "DeletedClientTimeExpiration": "120s"}
    )
    assert result.ctl_sync_timeout == timedelta(seconds=30)
    assert result.deleted_client_time_expiration == timedelta(seconds=120)


@pytest.mark.parametrize("state", STATES)
def test_shoot_flag_override(state):
    key = f"SendLogsToMainClusterWhenIs{state.capitalize()}State"
    field_name = f"send_logs_when_is_in_{state}_state"
    default = getattr(SHOOT_CONTROLLER_CLIENT_CONFIG, field_name)
    shoot, seed = parse_controller_client_config({key: str(not default).lower()})
    assert shoot == replace(SHOOT_CONTROLLER_CLIENT_CONFIG, **{field_name: not default})
    assert seed == SEED_CONTROLLER_CLIENT_CONFIG


@pytest.mark.parametrize("state", STATES)
def test_seed_flag_override(state):
    key = f"SendLogsToDefaultClientWhenClusterIs{state.capitalize()}State"
    field_name = f"send_logs_when_is_in_{state}_state"
    default = getattr(SEED_CONTROLLER_CLIENT_CONFIG, field_name)
    shoot, seed = parse_controller_client_config({key: str(not default).lower()})
    assert seed == replace(SEED_CONTROLLER_CLIENT_CONFIG, **{field_name: not default})
    assert shoot == SHOOT_CONTROLLER_CLIENT_CONFIG


def test_waking_state_is_not_configurable():
    shoot, seed = parse_controller_client_config(
        {
            "SendLogsToMainClusterWhenIsWakingState": "false",
            "SendLogsToDefaultClientWhenClusterIsWakingState": "true",
        }
    )
    assert shoot.send_logs_when_is_in_waking_state is True
    assert seed.send_logs_when_is_in_waking_state is False


def test_flags_flow_into_controller_config():
    result = parse_controller_config({"SendLogsToMainClusterWhenIsReadyState": "false"})
    assert result.shoot_controller_client_config.send_logs_when_is_in_ready_state is False


@pytest.mark.parametrize(
    "settings",
    [
        {"ControllerSyncTimeout": "a"},
        {"DeletedClientTimeExpiration": "a"},
        {"SendLogsToMainClusterWhenIsCreationState": "a"},
        {"SendLogsToDefaultClientWhenClusterIsMigrationState": "a"},
    ],
)
def test_bad_values_raise(settings):
    with pytest.raises(ConfigError):
        parse_controller_config(settings)


def test_error_names_the_key():
    with pytest.raises(ConfigError, match="SendLogsToMainClusterWhenIsDeletedState"):
        parse_controller_client_config({"SendLogsToMainClusterWhenIsDeletedState": "maybe"})