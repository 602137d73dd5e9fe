"""
Configuration classes for the credit spread engine.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from credit_spread_engine.exceptions import ConfigurationError

ALLOWED_SPREAD_WIDTHS = (2.5, 5.0)

# camelCase names used by the web front end and older config files
_FILTER_ALIASES = {
    "minDte": "min_dte",
    "maxDte": "max_dte",
    "minIvr": "min_ivr",
    "preferredIvr": "preferred_ivr",
    "targetDelta": "target_delta",
    "deltaRange": "delta_range",
    "minCreditPercent": "min_credit_percent",
    "maxCreditPercent": "max_credit_percent",
    "spreadWidth": "spread_width",
}

_OCO_ALIASES = {
    "takeProfitPercent": "take_profit_percent",
    "stopLossMultiplier": "stop_loss_multiplier",
    "timeStopDays": "time_stop_days",
}


def _type_errors(config: Any, config_class: type) -> List[str]:
    """Report fields that are not plain numbers (YAML strings, nulls, booleans)."""
    errors = []
    for f in fields(config_class):
        value = getattr(config, f.name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            errors.append(f"{f.name} must be a number, got {value!r}")
    return errors


@dataclass(frozen=True)
class ScannerFilters:
    """
    Screening thresholds shared by the scanner and the trade recommender.

    Attributes:
        min_dte: Minimum days to expiration (default: 7)
        max_dte: Maximum days to expiration (default: 10)
        min_ivr: Minimum acceptable IV rank, 0-100 (default: 25)
        preferred_ivr: IV rank considered optimal (default: 35)
        target_delta: Short leg delta target (default: 0.16)
        delta_range: Allowed deviation around target_delta (default: 0.05)
        min_credit_percent: Minimum credit as fraction of width (default: 0.05)
        max_credit_percent: Maximum credit as fraction of width (default: 0.07)
        spread_width: Strike width in points, 2.5 or 5 (default: 2.5)
    """
    min_dte: int = 7
    max_dte: int = 10
    min_ivr: float = 25.0
    preferred_ivr: float = 35.0
    target_delta: float = 0.16
    delta_range: float = 0.05
    min_credit_percent: float = 0.05
    max_credit_percent: float = 0.07
    spread_width: float = 2.5

    def __post_init__(self) -> None:
        errors = validate_filters(self)
        if errors:
            raise ConfigurationError(errors)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def validate_filters(filters: ScannerFilters) -> List[str]:
    """
    Check screening thresholds without raising.

    Returns:
        List of human-readable violations, empty when valid.
    """
    errors = _type_errors(filters, ScannerFilters)
    if errors:
        return errors

    if not 1 <= filters.min_dte <= 45:
        errors.append("min_dte must be between 1 and 45 days")
    if filters.max_dte < filters.min_dte:
        errors.append("max_dte must be >= min_dte")
    if not 0 <= filters.min_ivr <= 100:
        errors.append("min_ivr must be between 0 and 100")
    if not 0 <= filters.preferred_ivr <= 100:
        errors.append("preferred_ivr must be between 0 and 100")
    if filters.preferred_ivr < filters.min_ivr:
        errors.append("preferred_ivr must be >= min_ivr")
    if not 0 <= filters.target_delta <= 1:
        errors.append("target_delta must be between 0 and 1")
    if not 0 <= filters.delta_range <= 1:
        errors.append("delta_range must be between 0 and 1")
    if not 0 <= filters.min_credit_percent <= 1:
        errors.append("min_credit_percent must be between 0 and 1")
    if not 0 <= filters.max_credit_percent <= 1:
        errors.append("max_credit_percent must be between 0 and 1")
    if filters.max_credit_percent < filters.min_credit_percent:
        errors.append("max_credit_percent must be >= min_credit_percent")
    if filters.spread_width not in ALLOWED_SPREAD_WIDTHS:
        errors.append(f"spread_width must be one of 2.5, 5 (got {filters.spread_width})")

    return errors


def create_default_filters() -> ScannerFilters:
    """Return the standard 7-10 DTE, 0.16 delta, 2.5-wide screening profile."""
    return ScannerFilters()


@dataclass(frozen=True)
class OCOConfig:
    """
    Bracket exit configuration.

    Attributes:
        take_profit_percent: Buy back at this fraction of the credit (default: 0.5)
        stop_loss_multiplier: Stop out at this multiple of the credit (default: 2.0)
        time_stop_days: Calendar days until the time stop (default: 2)
    """
    take_profit_percent: float = 0.5
    stop_loss_multiplier: float = 2.0
    time_stop_days: int = 2

    def __post_init__(self) -> None:
        errors = _type_errors(self, OCOConfig)
        if errors:
            raise ConfigurationError(errors)
        if not 0 <= self.take_profit_percent <= 1:
            errors.append("take_profit_percent must be between 0 and 1")
        if self.stop_loss_multiplier < 1:
            errors.append("stop_loss_multiplier must be at least 1")
        if self.time_stop_days < 1:
            errors.append("time_stop_days must be at least 1")
        if errors:
            raise ConfigurationError(errors)


def _normalize_section(
    section: Any,
    name: str,
    aliases: Dict[str, str],
    allowed: set,
    source: Optional[str],
) -> Dict[str, Any]:
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigurationError([f"'{name}' must be a mapping"], source)

    normalized = {}
    unknown = []
    for key, value in section.items():
        key = aliases.get(key, key)
        if key not in allowed:
            unknown.append(str(key))
            continue
        normalized[key] = value

    if unknown:
        raise ConfigurationError(
            [f"unknown {name} key(s): {', '.join(sorted(unknown))}"], source
        )
    return normalized


def load_config(file_path: Union[str, Path]) -> Tuple[ScannerFilters, OCOConfig]:
    """
    Load screening filters and exit configuration from a YAML file.

    The file may contain a ``filters`` mapping and an ``oco`` mapping; either
    may be omitted, in which case defaults apply.

    Args:
        file_path: Path to the YAML configuration file.

    Returns:
        Tuple of (ScannerFilters, OCOConfig).

    Raises:
        ConfigurationError: If the file is missing, unparsable, or invalid.
    """
    path = Path(file_path)
    source = str(path)
    if not path.exists():
        raise ConfigurationError(["file not found"], source)

    try:
        with open(path, "r") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError([f"YAML parsing error: {e}"], source) from e

    if content is None:
        content = {}
    if not isinstance(content, dict):
        raise ConfigurationError(["top-level document must be a mapping"], source)

    unknown_sections = set(content) - {"filters", "oco"}
    if unknown_sections:
        raise ConfigurationError(
            [f"unknown section(s): {', '.join(sorted(map(str, unknown_sections)))}"],
            source,
        )

    filter_kwargs = _normalize_section(
        content.get("filters"),
        "filters",
        _FILTER_ALIASES,
        {f.name for f in fields(ScannerFilters)},
        source,
    )
    if "spread_width" in filter_kwargs:
        # Widths arrive as "2.5" / "5" from form-driven configs
        try:
            filter_kwargs["spread_width"] = float(filter_kwargs["spread_width"])
        except (TypeError, ValueError):
            raise ConfigurationError(
                [f"spread_width must be numeric (got {filter_kwargs['spread_width']!r})"],
                source,
            )

    try:
        filters = ScannerFilters(**filter_kwargs)
    except ConfigurationError as e:
        raise ConfigurationError(e.errors, source) from e

    oco = oco_config_from_mapping(content.get("oco"), source)

    return filters, oco


def oco_config_from_mapping(
    section: Optional[Mapping[str, Any]], source: Optional[str] = None
) -> OCOConfig:
    """
    Build an OCOConfig from a partial mapping of overrides.

    Accepts the same snake_case and camelCase keys as the ``oco`` section
    of a config file.

    Raises:
        ConfigurationError: On unknown keys or invalid values.
    """
    kwargs = _normalize_section(
        section,
        "oco",
        _OCO_ALIASES,
        {f.name for f in fields(OCOConfig)},
        source,
    )
    try:
        return OCOConfig(**kwargs)
    except ConfigurationError as e:
        raise ConfigurationError(e.errors, source) from e
