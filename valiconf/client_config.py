"""Settings of the client that pushes log batches to the backend."""

from __future__ import annotations

import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta

from .values import (
    ConfigError,
    is_valid_label_name,
    parse_bool,
    parse_duration,
    parse_int,
    parse_matchers,
)

__all__ = [
    "DEFAULT_CLIENT_URL",
    "DEFAULT_LABELS",
    "DqueConfig",
    "BufferConfig",
    "BackoffConfig",
    "ValiClientConfig",
    "ClientConfig",
    "parse_client_config",
]

DEFAULT_CLIENT_URL = "http://localhost:3100/vali/api/v1/push"
DEFAULT_LABELS = '{job="fluent-bit"}'


@dataclass(frozen=True)
class DqueConfig:
    """Settings of the disk-backed queue."""

    queue_dir: str = "/tmp/flb-storage/vali"
    queue_segment_size: int = 500
    queue_sync: bool = False
    queue_name: str = "dque"


@dataclass(frozen=True)
class BufferConfig:
    """Settings of the output buffer."""

    buffer: bool = False
    buffer_type: str = "dque"
    dque_config: DqueConfig = field(default_factory=DqueConfig)


@dataclass(frozen=True)
class BackoffConfig:
    """Retry policy for failed pushes."""

    min_backoff: timedelta = timedelta(milliseconds=500)
    max_backoff: timedelta = timedelta(seconds=300)
    max_retries: int = 10


@dataclass
class ValiClientConfig:
    """Settings of the push client itself."""

    url: str = DEFAULT_CLIENT_URL
    proxy_url: str | None = None
    tenant_id: str = ""
    batch_wait: timedelta = timedelta(seconds=1)
    batch_size: int = 1024 * 1024
    external_labels: dict[str, str] = field(default_factory=lambda: {"job": "fluent-bit"})
    backoff_config: BackoffConfig = field(default_factory=BackoffConfig)
    timeout: timedelta = timedelta(seconds=10)


@dataclass
class ClientConfig:
    """All client-related settings."""

    vali_config: ValiClientConfig = field(default_factory=ValiClientConfig)
    buffer_config: BufferConfig = field(default_factory=BufferConfig)
    sort_by_timestamp: bool = False
    number_of_batch_ids: int = 10
    id_label_name: str = "id"


def _get(cfg: Mapping[str, str], key: str) -> str:
    return cfg.get(key) or ""


def _check_url(text: str) -> str:
    """Validate a URL the way a strict URL parser would; return it unchanged."""
    if any(ord(char) < 0x20 or char == "\x7f" for char in text):
        raise ValueError("invalid control character in URL")
    has_scheme = False
    for index, char in enumerate(text):
        if char.isascii() and char.isalpha():
            continue
        if char.isdigit() or char in "+-.":
            if index == 0:
                break
            continue
        if char == ":":
            if index == 0:
                raise ValueError("missing protocol scheme")
            has_scheme = True
        break
    if not has_scheme and not text.startswith("/"):
        first_segment = text.split("/", 1)[0]
        if ":" in first_segment:
            raise ValueError("first path segment in URL cannot contain colon")
    parts = urllib.parse.urlsplit(text)
    _ = parts.port
    return text


def _duration(cfg: Mapping[str, str], key: str) -> timedelta | None:
    raw = _get(cfg, key)
    if not raw:
        return None
    try:
        return parse_duration(raw)
    except ConfigError as exc:
        raise ConfigError(f"failed to parse {key}: {raw} : {exc}") from exc


def _integer(cfg: Mapping[str, str], key: str) -> int | None:
    raw = _get(cfg, key)
    if not raw:
        return None
    try:
        return parse_int(raw)
    except ConfigError as exc:
        raise ConfigError(f"failed to parse {key}: {raw}") from exc


def _boolean(cfg: Mapping[str, str], key: str, message: str) -> bool | None:
    raw = _get(cfg, key)
    if not raw:
        return None
    try:
        return parse_bool(raw)
    except ConfigError as exc:
        raise ConfigError(f"{message}: {exc}") from exc


def _parse_vali_client(cfg: Mapping[str, str]) -> ValiClientConfig:
    defaults = ValiClientConfig()

    url = _get(cfg, "URL") or DEFAULT_CLIENT_URL
    try:
        _check_url(url)
    except ValueError as exc:
        raise ConfigError("failed to parse client URL") from exc

    proxy_url = _get(cfg, "ProxyURL") or None
    if proxy_url is not None:
        try:
            _check_url(proxy_url)
        except ValueError as exc:
            raise ConfigError(f"failed to parse proxy URL: {exc}") from exc

    batch_wait = _duration(cfg, "BatchWait") or defaults.batch_wait
    batch_size = _integer(cfg, "BatchSize")

    labels = _get(cfg, "Labels") or DEFAULT_LABELS
    external_labels = {name: value for name, _, value in parse_matchers(labels)}

    max_retries = _integer(cfg, "MaxRetries")
    timeout = _duration(cfg, "Timeout")
    min_backoff = _duration(cfg, "MinBackoff")
    max_backoff = _duration(cfg, "MaxBackoff")
    backoff = BackoffConfig(
        min_backoff=defaults.backoff_config.min_backoff if min_backoff is None else min_backoff,
        max_backoff=defaults.backoff_config.max_backoff if max_backoff is None else max_backoff,
        max_retries=defaults.backoff_config.max_retries if max_retries is None else max_retries,
    )

    return ValiClientConfig(
        url=url,
        proxy_url=proxy_url,
        tenant_id=_get(cfg, "TenantID"),
        batch_wait=batch_wait,
        batch_size=defaults.batch_size if batch_size is None else batch_size,
        external_labels=external_labels,
        backoff_config=backoff,
        timeout=defaults.timeout if timeout is None else timeout,
    )


def _parse_buffer(cfg: Mapping[str, str]) -> BufferConfig:
    defaults = BufferConfig()
    dque_defaults = defaults.dque_config

    buffer = _boolean(cfg, "Buffer", "invalid value for Buffer, error")

    raw_segment = _get(cfg, "QueueSegmentSize")
    segment_size = dque_defaults.queue_segment_size
    if raw_segment:
        try:
            segment_size = parse_int(raw_segment)
        except ConfigError as exc:
            raise ConfigError(
                f"cannot convert QueueSegmentSize {raw_segment} to integer, error: {exc}"
            ) from exc

    raw_sync = _get(cfg, "QueueSync")
    if raw_sync in ("normal", ""):
        queue_sync = False
    elif raw_sync == "full":
        queue_sync = True
    else:
        raise ConfigError(f"invalid string queueSync: {raw_sync}")

    dque = DqueConfig(
        queue_dir=_get(cfg, "QueueDir") or dque_defaults.queue_dir,
        queue_segment_size=segment_size,
        queue_sync=queue_sync,
        queue_name=_get(cfg, "QueueName") or dque_defaults.queue_name,
    )
    return BufferConfig(
        buffer=defaults.buffer if buffer is None else buffer,
        buffer_type=_get(cfg, "BufferType") or defaults.buffer_type,
        dque_config=dque,
    )


def parse_client_config(cfg: Mapping[str, str]) -> ClientConfig:
    """Build a :class:`ClientConfig` from string settings."""
    vali_config = _parse_vali_client(cfg)
    buffer_config = _parse_buffer(cfg)

    sort_by_timestamp = _boolean(cfg, "SortByTimestamp", "invalid string SortByTimestamp")

    raw_ids = _get(cfg, "NumberOfBatchIDs")
    if raw_ids:
        try:
            number_of_batch_ids = parse_int(raw_ids)
        except ConfigError as exc:
            raise ConfigError(f"failed to parse NumberOfBatchIDs: {raw_ids}") from exc
        if number_of_batch_ids <= 0:
            raise ConfigError(f"NumberOfBatchIDs can't be zero or negative value: {raw_ids}")
    else:
        number_of_batch_ids = 10

    id_label_name = _get(cfg, "IdLabelName") or "id"
    if not is_valid_label_name(id_label_name):
        raise ConfigError(f"invalid IdLabelName: {id_label_name}")

    return ClientConfig(
        vali_config=vali_config,
        buffer_config=buffer_config,
        sort_by_timestamp=bool(sort_by_timestamp),
        number_of_batch_ids=number_of_batch_ids,
        id_label_name=id_label_name,
    )