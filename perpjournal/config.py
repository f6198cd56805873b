"""
Configuration loading and validation for the trading journal.

Configuration is read from YAML into frozen dataclasses. Validation is a
set of explicit checks on the raw dictionary, run before any objects are
built, so a bad file fails with a readable message.
"""

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Type, cast

from perpjournal.filters import ALL_SYMBOLS, DATE_RANGES

__all__ = ["load_config", "Config", "SampleConfig", "OUTPUT_FORMATS"]

OUTPUT_FORMATS = ("json", "markdown", "csv")


# §1. Nested Configuration Dataclasses
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class RunConfig:
    name: str
    output_dir: Path


@dataclass(frozen=True)
class DataConfig:
    trades_path: Path


@dataclass(frozen=True)
class FilterConfig:
    symbol: str = ALL_SYMBOLS
    date_range: str = "All"


@dataclass(frozen=True)
class SampleConfig:
    count: int = 150
    seed: Optional[int] = None


@dataclass(frozen=True)
class ReportingConfig:
    output_formats: List[Literal["json", "markdown", "csv"]] = field(default_factory=lambda: ["json"])
    show_tables: bool = True

    def __post_init__(self) -> None:
        # A null output_formats in YAML means no reports.
        if self.output_formats is None:
            object.__setattr__(self, "output_formats", [])


# §2. Top-Level Configuration
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Config:
    """The root configuration object, composing all nested sections."""
    run: RunConfig
    data: DataConfig
    filters: FilterConfig = field(default_factory=FilterConfig)
    sample: SampleConfig = field(default_factory=SampleConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)


# §3. Validation and Loading
# --------------------------------------------------------------------------------------


def _from_dict(data_class: Type[Any], data: Any) -> Any:
    """Recursively creates nested dataclasses from a dictionary."""
    if isinstance(data, dict) and hasattr(data_class, "__dataclass_fields__"):
        field_types = {f.name: f.type for f in data_class.__dataclass_fields__.values()}

        kwargs = {}
        for k, v in data.items():
            field_type = field_types.get(k)
            # Unknown keys pass through so the constructor rejects them.
            kwargs[k] = _from_dict(field_type, v) if field_type else v
        return data_class(**kwargs)

    if isinstance(data, str) and data_class is Path:
        return Path(data)
    return data


def _validate_config(cfg: Dict[str, Any]) -> None:
    """
    Performs simple, explicit validation checks on the raw config dictionary.
    Fail fast on any logical inconsistencies.
    """
    if not isinstance(cfg, dict):
        raise ValueError("Configuration must be a YAML object.")

    for section in ("run", "data"):
        if not isinstance(cfg.get(section), dict):
            raise ValueError(f"Missing required section '{section}'.")

    date_range = (cfg.get("filters") or {}).get("date_range", "All")
    if date_range not in DATE_RANGES:
        raise ValueError(f"filters.date_range must be one of {DATE_RANGES}, got '{date_range}'")

    formats = (cfg.get("reporting") or {}).get("output_formats") or []
    unknown = sorted(set(formats) - set(OUTPUT_FORMATS))
    if unknown:
        raise ValueError(f"reporting.output_formats contains unknown formats: {unknown}")

    count = (cfg.get("sample") or {}).get("count", 1)
    if not isinstance(count, int) or count <= 0:
        raise ValueError("sample.count must be a positive integer.")


# impure
def load_config(config_path: Path) -> Config:
    """
    Loads and validates a YAML configuration file into a Config object.
    #impure: Reads from the filesystem.
    """
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in {config_path}: {e}") from e

    _validate_config(raw_config)

    try:
        # _from_dict is too dynamic for mypy to follow.
        return cast(Config, _from_dict(Config, raw_config))
    except (TypeError, KeyError) as e:
        raise ValueError(f"Configuration validation failed: missing or invalid key. Details: {e}") from e
