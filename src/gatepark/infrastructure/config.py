# File: src/gatepark/infrastructure/config.py
"""
Facility configuration

Settings are pydantic models so a bad YAML file fails at load time with a
ValidationError naming the offending field. FacilitySettings.default()
describes the demonstration facility: four spots, two entrances, a
per-minute exit and a per-hour exit.
"""

from typing import List, Optional, Union
from decimal import Decimal
from pathlib import Path
import logging

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from ..domain.models import VehicleCategory
from ..domain.strategies import DEFAULT_PER_MINUTE_RATE, DEFAULT_PER_HOUR_RATE


logger = logging.getLogger(__name__)

PRICING_KEYS = ("per_minute", "per_hour")


class SpotSettings(BaseModel):
    id: int = Field(gt=0)
    category: str

    @field_validator('category')
    @classmethod
    def validate_category(cls, v):
        return VehicleCategory.parse(v).value


class ExitSettings(BaseModel):
    id: str = Field(min_length=1)
    pricing: str = "per_minute"

    @field_validator('pricing')
    @classmethod
    def validate_pricing(cls, v):
        key = v.strip().lower().replace('-', '_')
        if key not in PRICING_KEYS:
            raise ValueError(f"Unknown pricing strategy: {v}. Valid: {PRICING_KEYS}")
        return key


class FacilitySettings(BaseModel):
    name: str = "Demo Parking Facility"
    currency: str = Field(default="USD", min_length=3, max_length=3)
    per_minute_rate: Decimal = Field(default=DEFAULT_PER_MINUTE_RATE, ge=0)
    per_hour_rate: Decimal = Field(default=DEFAULT_PER_HOUR_RATE, ge=0)
    spots: List[SpotSettings] = Field(default_factory=list)
    entrances: List[str] = Field(default_factory=list)
    exits: List[ExitSettings] = Field(default_factory=list)
    log_level: str = "INFO"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @model_validator(mode='after')
    def validate_unique_ids(self):
        spot_ids = [spot.id for spot in self.spots]
        if len(spot_ids) != len(set(spot_ids)):
            raise ValueError("Duplicate spot ids")
        if len(self.entrances) != len(set(self.entrances)):
            raise ValueError("Duplicate entrance ids")
        exit_ids = [gate.id for gate in self.exits]
        if len(exit_ids) != len(set(exit_ids)):
            raise ValueError("Duplicate exit ids")
        return self

    @classmethod
    def default(cls) -> 'FacilitySettings':
        return cls(
            spots=[
                SpotSettings(id=1, category="two_wheeler"),
                SpotSettings(id=2, category="four_wheeler"),
                SpotSettings(id=3, category="four_wheeler"),
                SpotSettings(id=4, category="two_wheeler"),
            ],
            entrances=["Entrance-1", "Entrance-2"],
            exits=[
                ExitSettings(id="Exit-1", pricing="per_minute"),
                ExitSettings(id="Exit-2", pricing="per_hour"),
            ]
        )


def load_settings(path: Optional[Union[str, Path]] = None) -> FacilitySettings:
    """
    Load settings from a YAML file
    No path means the built-in demo facility
    """
    if path is None:
        return FacilitySettings.default()

    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")

    settings = FacilitySettings(**data)
    logger.info(
        f"Loaded {len(settings.spots)} spots, {len(settings.entrances)} entrances "
        f"and {len(settings.exits)} exits from {path}"
    )
    return settings
