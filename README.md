# valiconf

`valiconf` parses the configuration of a Vali log-shipping output plugin. The settings arrive as flat string
key/value pairs. Each value is checked and converted into typed dataclasses. Settings that are unset or empty get the
plugin's defaults. A malformed value raises `ConfigError`.

## Installation

```
pip install valiconf
```

## Usage

Pass `parse_config` a mapping of setting names to strings, such as a plain `dict`. Missing keys and empty strings
both count as "not set":

```python
from valiconf.config import parse_config

config = parse_config({
    "URL": "http://vali.example.com:3100/vali/api/v1/push",
    "Labels": '{app="foo"}',
    "BatchWait": "30s",
    "LineFormat": "key_value",
    "LogLevel": "warn",
})

config.client_config.vali_config.batch_wait        # datetime.timedelta(seconds=30)
config.client_config.vali_config.external_labels   # {'app': 'foo'}
config.plugin_config.line_format                   # LineFormat.KV_PAIR
config.controller_config.ctl_sync_timeout          # datetime.timedelta(seconds=60)
config.log_level                                   # LogLevel.WARN
```

The result is a `valiconf.config.Config` with these parts.

- `client_config` is a `ClientConfig` from `valiconf.client_config`. It holds:
  - `vali_config`, a `ValiClientConfig`. It has the push `url`, `proxy_url`, `tenant_id`, `batch_wait`, `batch_size`,
    `timeout`, the `external_labels` read from the `Labels` selector, and a `BackoffConfig`;
  - `buffer_config`, a `BufferConfig` that contains a `DqueConfig`;
  - `sort_by_timestamp`, `number_of_batch_ids` and `id_label_name`.
- `controller_config` is a `ControllerConfig` from `valiconf.controller_config`. It holds:
  - the sync timeout and the lifetime of deleted clients;
  - the dynamic host prefix and suffix;
  - two `ControllerClientConfiguration` objects. They decide, for each cluster state, whether logs go to the main
    cluster and whether they go to the default client. The waking state has no setting of its own and always keeps
    its default.
- `plugin_config` is a `PluginConfig` from `valiconf.plugin_config`. It holds:
  - the label keys, the removed keys and the label map. `LabelMapPath` is either a path to a JSON file or inline
    JSON;
  - the `LineFormat`;
  - the dynamic host path, the dynamic host regex and the `DynamicTenant`;
  - the `KubernetesMetadataExtraction`;
  - the hostname label and the preserved labels.
- `log_level` is a `LogLevel`: `debug`, `info`, `warn` or `error`.
- `pprof` is a boolean.

Each part can also be parsed on its own with `parse_client_config`, `parse_controller_config` or
`parse_plugin_config`. `parse_controller_client_config` returns just the `(shoot, seed)` pair of
`ControllerClientConfiguration` objects.

## Value parsers

`valiconf.values` holds the parsers that the settings are built on:

- `parse_duration` reads compact durations such as `300ms`, `1.5h` or `2h45m` and returns a `timedelta`. The units
  are `ns`, `us`/`µs`, `ms`, `s`, `m` and `h`. Anything finer than a microsecond is truncated.
- `parse_bool` accepts `1`, `t`, `T`, `true`, `TRUE`, `True` and their false counterparts.
- `parse_int` accepts signed decimal integers that fit in 64 bits.
- `parse_matchers` reads a stream selector such as `{job="fluent-bit"}` into `(name, operator, value)` triples.
- `is_valid_label_name` checks a label name.

## Errors

Every invalid setting raises `valiconf.values.ConfigError`, a subclass of `ValueError`. Its message names the key
that was at fault:

```python
from valiconf.config import parse_config
from valiconf.values import ConfigError

try:
    parse_config({"BatchWait": "soon"})
except ConfigError as exc:
    print(exc)   # failed to parse BatchWait: soon : time: invalid duration "soon"
```

## What this package does not do

`valiconf` only parses and validates settings. It does not read log records, send anything to a backend, buffer
data on disk or watch clusters. The objects it returns describe how such a plugin should behave, and acting on them
is left to the caller.