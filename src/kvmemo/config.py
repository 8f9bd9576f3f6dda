from __future__ import annotations

from typing import Any, Protocol

from config import ConfigurationSet, config_from_dict, config_from_env, config_from_yaml


class AppConfig(Protocol):
    def __getitem__(self, key: str) -> object: ...


_DEFAULTS: dict[str, object] = {
    "cache": {
        "binding": "KV",
        "prefix": "",
        "ttl": 3600,
    },
    "store": {
        "type": "sqlite",
        "db_path": "~/.cache/kvmemo/kv.db",
        "account_id": "",
        "namespace_id": "",
        "api_token": "",
    },
}


def create_config(
    yaml_path: str = "kvmemo.yaml",
    env_prefix: str = "KVMEMO",
    defaults: dict[str, object] | None = None,
) -> ConfigurationSet:
    """Create a layered configuration.

    Priority (highest to lowest): env vars > YAML file > defaults dict.

    Args:
        yaml_path: Path to the YAML config file.
        env_prefix: Prefix for environment variables, e.g. ``KVMEMO__CACHE__TTL``.
        defaults: Default configuration values.
    """
    if defaults is None:
        defaults = _DEFAULTS

    return ConfigurationSet(
        config_from_env(env_prefix, separator="__", lowercase_keys=True),
        config_from_yaml(yaml_path, read_from_file=True, ignore_missing_paths=True),
        config_from_dict(defaults),
    )


def cache_defaults(cfg: AppConfig) -> dict[str, Any]:
    """Return ``configure()`` default options from the ``cache.*`` section.

    Env values arrive as strings, so the TTL is converted to a number here.
    """
    return {
        "binding": str(cfg["cache.binding"]),
        "prefix": str(cfg["cache.prefix"]),
        "ttl": float(str(cfg["cache.ttl"])),
    }
