"""
Configuration for a streaming run.

Values are resolved in this order: explicit overrides (CLI flags), then
environment (BEHEMOTH_URI, BEHEMOTH_APIKEY, BEHEMOTH_ASSET), then an optional
YAML file (--config or BEHEMOTH_CONFIG), then built-in defaults.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError
from .exporters.otlp_exporter import PROTOCOLS

DEFAULT_ASSET = "behemoth"

# Environment variable -> config field.
ENV_VARS = {
    "BEHEMOTH_URI": "uri",
    "BEHEMOTH_APIKEY": "apikey",
    "BEHEMOTH_ASSET": "asset",
}
CONFIG_PATH_ENV = "BEHEMOTH_CONFIG"

_INT_FIELDS = (
    "num_components",
    "channels_per_component",
    "frequency",
    "batch_size",
    "max_retries",
    "count",
)
_STR_FIELDS = ("asset", "uri", "apikey", "protocol", "output_file")
_BOOL_FIELDS = ("disable_tls", "console")


@dataclass(frozen=True)
class StreamConfig:
    """All values consumed by a streaming run."""

    asset: str = DEFAULT_ASSET
    num_components: int = 100
    channels_per_component: int = 10
    frequency: int = 1000
    uri: str | None = None
    apikey: str | None = None
    disable_tls: bool = False
    protocol: str = "grpc"
    output_file: str | None = None
    console: bool = False
    batch_size: int = 100
    max_retries: int = 3
    count: int | None = None

    @property
    def uses_otlp(self) -> bool:
        """True when flows go to a remote endpoint rather than a local sink."""
        return not (self.output_file or self.console)

    def with_overrides(self, **overrides: Any) -> "StreamConfig":
        """Return a copy with non-None overrides applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> "StreamConfig":
        """Raise ConfigurationError for values the run cannot start with."""
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        for name in _STR_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(f"{name} must be a string, got {value!r}")
        for name in _BOOL_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be true or false, got {value!r}")
        if not self.asset or not self.asset.strip():
            raise ConfigurationError("Asset name must not be empty")
        if self.frequency <= 0:
            raise ConfigurationError(f"Frequency must be a positive number of Hz, got {self.frequency}")
        if self.num_components < 0:
            raise ConfigurationError(f"num_components must be >= 0, got {self.num_components}")
        if self.channels_per_component < 0:
            raise ConfigurationError(
                f"channels_per_component must be >= 0, got {self.channels_per_component}"
            )
        if self.batch_size <= 0:
            raise ConfigurationError(f"batch_size must be > 0, got {self.batch_size}")
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.count is not None and self.count < 0:
            raise ConfigurationError(f"count must be >= 0, got {self.count}")
        if self.protocol not in PROTOCOLS:
            raise ConfigurationError(
                f"Unsupported protocol {self.protocol!r}; expected one of {', '.join(PROTOCOLS)}"
            )
        if self.uses_otlp:
            if not self.uri:
                raise ConfigurationError("An ingestion URI is required (--uri or BEHEMOTH_URI)")
            if not self.uri.startswith(("http://", "https://")):
                raise ConfigurationError(f"URI must include http:// or https://, got {self.uri!r}")
            if not self.apikey:
                raise ConfigurationError("An API key is required (--apikey or BEHEMOTH_APIKEY)")
        return self


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; raise ConfigurationError when missing or malformed."""
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def config_from_env(environ: dict[str, str] | None = None) -> dict[str, str]:
    """Config values set through the environment."""
    environ = os.environ if environ is None else environ
    values = {}
    for var, key in ENV_VARS.items():
        raw = environ.get(var, "").strip()
        if raw:
            values[key] = raw
    return values


def resolve_config(
    config_path: str | Path | None = None,
    environ: dict[str, str] | None = None,
    **overrides: Any,
) -> StreamConfig:
    """Merge defaults, YAML file, environment and overrides, then validate."""
    environ = os.environ if environ is None else environ
    config = StreamConfig()
    path = config_path or environ.get(CONFIG_PATH_ENV, "").strip() or None
    if path:
        file_values = {str(k).replace("-", "_"): v for k, v in load_yaml(Path(path)).items()}
        config = config.with_overrides(**file_values)
    config = config.with_overrides(**config_from_env(environ))
    config = config.with_overrides(**overrides)
    return config.validate()
