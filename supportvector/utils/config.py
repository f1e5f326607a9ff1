"""YAML settings for the CLI, read into nested attribute dicts.

A user file only needs the keys it changes; everything else comes from
the bundled ``configs/default.yaml``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional

import yaml


class AttrDict(dict):
    """Dict with attribute access (``cfg.svm.cost``)."""

    def __getattr__(self, key: str) -> Any:
        if key not in self:
            raise AttributeError(f"Config key not found: '{key}'")
        return self[key]

    def __setattr__(self, key: str, value: Any) -> None:
        self[key] = value


def _to_attrdict(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        return AttrDict({k: _to_attrdict(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attrdict(i) for i in obj]
    return obj


def _merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path, "r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is not None and not isinstance(raw, Mapping):
        raise ValueError(f"Config {path} must hold a mapping at the top level.")
    return raw or {}


def default_config_path() -> Path:
    return Path(__file__).resolve().parent.parent / "configs" / "default.yaml"


def load_config(path: Optional[Path | str] = None) -> AttrDict:
    """Load settings, layering *path* over the bundled defaults.

    Args:
        path: Optional YAML file. Its keys replace the defaults key by key,
            so nested sections can be overridden partially.

    Returns:
        AttrDict with nested attribute access.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file is not a mapping or ``svm.cost`` is not positive.
    """
    settings = _read_yaml(default_config_path())
    if path is not None:
        settings = _merge(settings, _read_yaml(Path(path)))

    cfg = _to_attrdict(settings)
    if cfg.svm.cost <= 0:
        raise ValueError(f"svm.cost must be positive, got {cfg.svm.cost}")
    return cfg
