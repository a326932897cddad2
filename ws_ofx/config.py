"""Runtime settings for the exporter.

Settings come from three layers, later ones winning: built-in defaults, an
optional JSON or YAML file, and ``WS_*`` environment variables.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

DEFAULT_GRAPHQL_URL = "https://my.wealthsimple.com/graphql"

_ENV_KEYS = {
    "WS_ACCESS_TOKEN": "access_token",
    "WS_IDENTITY_ID": "identity_id",
    "WS_GRAPHQL_URL": "graphql_url",
    "WS_OFX_OUTPUT_DIR": "output_dir",
}


@dataclass(frozen=True)
class Settings:
    """Connection details and fixed document constants."""

    access_token: Optional[str] = None
    identity_id: Optional[str] = None
    graphql_url: str = DEFAULT_GRAPHQL_URL
    output_dir: Path = Path(".")
    page_size: int = 100
    account_page_size: int = 25
    brokerage_name: str = "Wealthsimple"
    currency: str = "CAD"


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build :class:`Settings` from an optional config file and the environment."""

    settings = Settings()
    if config_path is not None:
        settings = apply_overrides(settings, _load_config_data(Path(config_path)))

    env = os.environ if env is None else env
    env_overrides = {
        name: env[key] for key, name in _ENV_KEYS.items() if env.get(key)
    }
    return apply_overrides(settings, env_overrides)


def apply_overrides(base: Settings, overrides: Mapping[str, Any]) -> Settings:
    """Return a copy of *base* with the given fields replaced."""

    if not overrides:
        return base

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")

    values = dict(overrides)
    if "output_dir" in values:
        values["output_dir"] = Path(values["output_dir"])
    for name in ("page_size", "account_page_size"):
        if name in values:
            values[name] = int(values[name])
            if values[name] <= 0:
                raise ValueError(f"{name} must be positive")
    return replace(base, **values)


def _load_config_data(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text()
    if not text.strip():
        return {}

    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError(f"Unsupported config file format: {path.suffix}")

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError("Configuration must be a mapping")
    return data


__all__ = [
    "DEFAULT_GRAPHQL_URL",
    "Settings",
    "load_settings",
    "apply_overrides",
]
