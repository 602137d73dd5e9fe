"""
Exit levels (OCO bracket) for credit spreads.
"""

from datetime import date, timedelta
from typing import Mapping, Optional, Union

from credit_spread_engine.config import OCOConfig, oco_config_from_mapping
from credit_spread_engine.models import OCOLevels


def compute_oco_levels(
    credit: float,
    config: Optional[Union[OCOConfig, Mapping[str, float]]] = None,
    today: Optional[date] = None,
) -> OCOLevels:
    """
    Derive take-profit, stop-loss and time-stop levels from the credit.

    The time stop counts calendar days; weekends and market holidays
    are not skipped.

    Args:
        credit: Net credit received
        config: OCOConfig, or a mapping of OCOConfig fields to override
            (snake_case or camelCase keys)
        today: Reference date (default: date.today())

    Returns:
        OCOLevels

    Raises:
        ConfigurationError: If a mapping has unknown keys or invalid values
    """
    if config is None:
        config = OCOConfig()
    elif not isinstance(config, OCOConfig):
        config = oco_config_from_mapping(config)

    if today is None:
        today = date.today()

    return OCOLevels(
        take_profit=credit * config.take_profit_percent,
        stop_loss=credit * config.stop_loss_multiplier,
        time_stop=today + timedelta(days=config.time_stop_days),
    )
