"""Settings of the output plugin that turns records into log lines."""

from __future__ import annotations

import enum
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .values import ConfigError, parse_bool, parse_int

__all__ = [
    "DEFAULT_KUBERNETES_METADATA_TAG_EXPRESSION",
    "DEFAULT_KUBERNETES_METADATA_TAG_KEY",
    "DEFAULT_KUBERNETES_METADATA_TAG_PREFIX",
    "LineFormat",
    "KubernetesMetadataExtraction",
    "DynamicTenant",
    "PluginConfig",
    "parse_plugin_config",
]

DEFAULT_KUBERNETES_METADATA_TAG_EXPRESSION = "\\.([^_]+)_([^_]+)_(.+)-([a-z0-9]{64})\\.log$"
DEFAULT_KUBERNETES_METADATA_TAG_KEY = "tag"
DEFAULT_KUBERNETES_METADATA_TAG_PREFIX = "kubernetes\\.var\\.log\\.containers"


class LineFormat(enum.IntEnum):
    """How a record is flattened into a log line."""

    JSON = 0
    KV_PAIR = 1


@dataclass(frozen=True)
class KubernetesMetadataExtraction:
    """How Kubernetes metadata is recovered from a record's tag."""

    fallback_to_tag_when_metadata_is_missing: bool = False
    drop_log_entry_without_k8s_metadata: bool = False
    tag_key: str = DEFAULT_KUBERNETES_METADATA_TAG_KEY
    tag_prefix: str = DEFAULT_KUBERNETES_METADATA_TAG_PREFIX
    tag_expression: str = DEFAULT_KUBERNETES_METADATA_TAG_EXPRESSION


@dataclass(frozen=True)
class DynamicTenant:
    """Tenant assigned to records whose field matches a regular expression."""

    tenant: str = ""
    field: str = ""
    regex: str = ""
    remove_tenant_id_when_sending_to_default_url: bool = False


@dataclass
class PluginConfig:
    """All plugin-related settings."""

    auto_kubernetes_labels: bool = False
    remove_keys: list[str] = field(default_factory=list)
    label_keys: list[str] = field(default_factory=list)
    line_format: LineFormat = LineFormat.JSON
    drop_single_key: bool = True
    label_map: dict[str, Any] | None = None
    dynamic_host_path: dict[str, Any] | None = None
    dynamic_host_regex: str = "*"
    kubernetes_metadata: KubernetesMetadataExtraction = field(
        default_factory=KubernetesMetadataExtraction
    )
    dynamic_tenant: DynamicTenant = field(default_factory=DynamicTenant)
    label_set_init_capacity: int = 12
    hostname_key: str | None = None
    hostname_value: str | None = None
    preserved_labels: dict[str, str] = field(default_factory=dict)
    enable_multi_tenancy: bool = False


def _get(cfg: Mapping[str, str], key: str) -> str:
    return cfg.get(key) or ""


def _boolean(cfg: Mapping[str, str], key: str, message: str, default: bool) -> bool:
    raw = _get(cfg, key)
    if not raw:
        return default
    try:
        return parse_bool(raw)
    except ConfigError as exc:
        raise ConfigError(message.format(raw=raw, error=exc)) from exc


def _json_object(content: str | bytes, what: str) -> dict[str, Any] | None:
    try:
        value = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ConfigError(f"failed to Unmarshal {what}: {exc}") from exc
    if value is not None and not isinstance(value, dict):
        raise ConfigError(f"failed to Unmarshal {what}: expected a JSON object")
    return value


def _read_label_map(source: str) -> dict[str, Any] | None:
    """Load the label map from a file, or from the text itself if no such file exists."""
    try:
        os.stat(source)
    except FileNotFoundError:
        content: str | bytes = source
    except (OSError, ValueError):
        content = ""
    else:
        try:
            content = Path(source).read_bytes()
        except OSError as exc:
            raise ConfigError(f"failed to open LabelMap file: {exc}") from exc
    return _json_object(content, "LabelMap file")


def _parse_kubernetes_metadata(cfg: Mapping[str, str]) -> KubernetesMetadataExtraction:
    return KubernetesMetadataExtraction(
        fallback_to_tag_when_metadata_is_missing=_boolean(
            cfg,
            "FallbackToTagWhenMetadataIsMissing",
            "invalid value for FallbackToTagWhenMetadataIsMissing, error: {error}",
            False,
        ),
        drop_log_entry_without_k8s_metadata=_boolean(
            cfg,
            "DropLogEntryWithoutK8sMetadata",
            "invalid string DropLogEntryWithoutK8sMetadata: {error}",
            False,
        ),
        tag_key=_get(cfg, "TagKey") or DEFAULT_KUBERNETES_METADATA_TAG_KEY,
        tag_prefix=_get(cfg, "TagPrefix") or DEFAULT_KUBERNETES_METADATA_TAG_PREFIX,
        tag_expression=_get(cfg, "TagExpression") or DEFAULT_KUBERNETES_METADATA_TAG_EXPRESSION,
    )


def _parse_dynamic_tenant(cfg: Mapping[str, str]) -> DynamicTenant:
    raw = _get(cfg, "DynamicTenant").strip(" ")
    if not raw:
        return DynamicTenant()
    values = raw.split(" ", 2)
    if len(values) != 3:
        raise ConfigError(
            'failed to parse DynamicTenant. Should consist of <tenant-name>" "'
            f'<field-for-regex>" "<regex>. Found {len(values)} elements'
        )
    tenant, field_name, regex = values
    return DynamicTenant(
        tenant=tenant,
        field=field_name,
        regex=regex,
        remove_tenant_id_when_sending_to_default_url=_boolean(
            cfg,
            "RemoveTenantIdWhenSendingToDefaultURL",
            "invalid value for RemoveTenantIdWhenSendingToDefaultURL, error: {error}",
            True,
        ),
    )


def _parse_line_format(raw: str) -> LineFormat:
    if raw in ("json", ""):
        return LineFormat.JSON
    if raw == "key_value":
        return LineFormat.KV_PAIR
    raise ConfigError(f"invalid format: {raw}")


def parse_plugin_config(cfg: Mapping[str, str]) -> PluginConfig:
    """Build a :class:`PluginConfig` from string settings."""
    auto_kubernetes_labels = _boolean(
        cfg,
        "AutoKubernetesLabels",
        "invalid boolean for AutoKubernetesLabels, error: {error}",
        False,
    )
    drop_single_key = _boolean(cfg, "DropSingleKey", "invalid boolean DropSingleKey: {raw}", True)

    raw_remove = _get(cfg, "RemoveKeys")
    remove_keys = raw_remove.split(",") if raw_remove else []
    raw_label_keys = _get(cfg, "LabelKeys")
    label_keys = raw_label_keys.split(",") if raw_label_keys else []

    line_format = _parse_line_format(_get(cfg, "LineFormat"))

    label_map = None
    label_map_path = _get(cfg, "LabelMapPath")
    if label_map_path:
        label_map = _read_label_map(label_map_path)
        label_keys = []

    dynamic_host_path = None
    raw_host_path = _get(cfg, "DynamicHostPath")
    if raw_host_path:
        dynamic_host_path = _json_object(raw_host_path, "DynamicHostPath json")

    kubernetes_metadata = _parse_kubernetes_metadata(cfg)
    dynamic_tenant = _parse_dynamic_tenant(cfg)

    raw_capacity = _get(cfg, "LabelSetInitCapacity")
    if raw_capacity:
        try:
            capacity = parse_int(raw_capacity)
        except ConfigError as exc:
            raise ConfigError(f"failed to parse LabelSetInitCapacity: {raw_capacity}") from exc
        if capacity <= 0:
            raise ConfigError(
                f"LabelSetInitCapacity can't be zero or negative value: {raw_capacity}"
            )
    else:
        capacity = 12

    hostname_key = hostname_value = None
    raw_hostname = _get(cfg, "HostnameKeyValue")
    if raw_hostname:
        tokens = raw_hostname.split(" ", 1)
        hostname_key = tokens[0]
        if len(tokens) == 2:
            hostname_value = tokens[1]

    raw_preserved = _get(cfg, "PreservedLabels")
    preserved_labels = (
        {label.strip(): "" for label in raw_preserved.split(",")} if raw_preserved else {}
    )

    enable_multi_tenancy = _boolean(
        cfg, "EnableMultiTenancy", "invalid boolean EnableMultiTenancy: {raw}", False
    )

    return PluginConfig(
        auto_kubernetes_labels=auto_kubernetes_labels,
        remove_keys=remove_keys,
        label_keys=label_keys,
        line_format=line_format,
        drop_single_key=drop_single_key,
        label_map=label_map,
        dynamic_host_path=dynamic_host_path,
        dynamic_host_regex=_get(cfg, "DynamicHostRegex") or "*",
        kubernetes_metadata=kubernetes_metadata,
        dynamic_tenant=dynamic_tenant,
        label_set_init_capacity=capacity,
        hostname_key=hostname_key,
        hostname_value=hostname_value,
        preserved_labels=preserved_labels,
        enable_multi_tenancy=enable_multi_tenancy,
    )