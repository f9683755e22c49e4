"""Engine tuning knobs, loadable from a JSON file."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from report_reconciler.errors import ConfigError
from report_reconciler.fields import FIELD_SYNONYMS, SynonymTable, with_synonyms

SUPPORTED_CONFIG_SUFFIXES = {".json", ".yml", ".yaml"}


@dataclass
class ReconcilerConfig:
    max_header_rows: int = 20
    max_header_cols: int = 20
    header_threshold: int = 3
    plan_lookahead_rows: int = 10
    projector_plan_window: int = 10
    projector_plan_cols: int = 20
    positional_fallback: bool = True
    default_hours: str = "8"
    synonyms: dict[str, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in (
            "max_header_rows",
            "max_header_cols",
            "header_threshold",
            "plan_lookahead_rows",
            "projector_plan_window",
            "projector_plan_cols",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"'{name}' must be a positive integer, got {value!r}")
        if not isinstance(self.positional_fallback, bool):
            raise ConfigError("'positional_fallback' must be true or false")
        self.default_hours = str(self.default_hours)
        if not isinstance(self.synonyms, dict):
            raise ConfigError("'synonyms' must map field names to lists of header fragments")
        try:
            self._table = with_synonyms(self.synonyms) if self.synonyms else FIELD_SYNONYMS
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    def synonym_table(self) -> SynonymTable:
        return self._table

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def config_from_dict(payload: dict[str, Any]) -> ReconcilerConfig:
    if not isinstance(payload, dict):
        raise ConfigError("Config root must be a JSON object.")
    known = {item.name for item in fields(ReconcilerConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
    return ReconcilerConfig(**payload)


def load_config(path: Path | str | None) -> ReconcilerConfig:
    if path is None:
        return ReconcilerConfig()
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config not found: {config_path}")
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ConfigError("Config must be .json, .yml, or .yaml")
    if suffix in {".yml", ".yaml"}:
        raise ConfigError("YAML configs are not supported yet. Use JSON for now.")
    try:
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    except Exception as exc:
        raise ConfigError(f"Could not read config: {exc}") from exc
    return config_from_dict(payload)


def default_config_text() -> str:
    payload = ReconcilerConfig().to_dict()
    payload["synonyms"] = {key.value: list(needles) for key, needles in FIELD_SYNONYMS.items()}
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
