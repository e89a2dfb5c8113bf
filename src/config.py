"""
Tunable constants for a season, grouped in one pydantic model so a JSON file
can override any of them (unknown keys are rejected).
"""
import logging
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt

logger = logging.getLogger(__name__)

MS_PER_SECOND = 1000
SECONDS_PER_YEAR = 31_536_000


class SimulationConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Season timing
    season_duration_ms: PositiveFloat = 20 * 60 * MS_PER_SECOND
    tick_interval_ms: PositiveFloat = 1 * MS_PER_SECOND
    market_cycle_ms: PositiveFloat = 60 * MS_PER_SECOND

    # Phase machine
    reaction_window_ticks: PositiveInt = 30
    shock_timeout_ticks: PositiveInt = 20
    resolution_delay_ms: float = Field(5 * MS_PER_SECOND, ge=0)
    max_action_points: int = Field(3, ge=0)

    # Distress
    distress_bankruptcy_ticks: PositiveInt = 60

    # Events
    event_cooldown_ms: float = Field(60 * MS_PER_SECOND, ge=0)
    event_probability: float = Field(0.15, ge=0, le=1)

    # Companies
    ai_company_count: int = Field(5, ge=0, le=26)
    starting_cash: PositiveFloat = 100_000
    max_loan: PositiveFloat = 500_000
    loan_cash_multiple: PositiveFloat = 5
    share_price_update_interval_ticks: PositiveInt = 10

    # AI
    ai_strategy: Literal["asset", "personality"] = "asset"
    ai_action_probability: float = Field(0.1, ge=0, le=1)
    competitor_second_best_chance: float = Field(0.2, ge=0, le=1)

    # News
    news_feed_size: PositiveInt = 100
    ambient_news_interval_ms: PositiveFloat = 30 * MS_PER_SECOND

    @property
    def ticks_per_year(self) -> float:
        return SECONDS_PER_YEAR / (self.tick_interval_ms / MS_PER_SECOND)


def load_config(path: Optional[Union[str, Path]] = None) -> SimulationConfig:
    if path is None:
        return SimulationConfig()
    path = Path(path)
    if not path.exists():
        logger.warning("Config file %s not found, using defaults", path)
        return SimulationConfig()
    return SimulationConfig.model_validate_json(path.read_text(encoding="utf-8"))
