# File: src/gatepark/infrastructure/factories.py
"""
Factory Pattern Implementation for the Gate Parking Simulator

1. PricingStrategyFactory - builds pricing strategies by key
2. FacilityBuilder - fluent builder wiring spots, gates, pricing and the event bus
   into a ParkingService
"""

from typing import Callable, Dict, List, Optional, Tuple, Type, Union
from datetime import datetime
from decimal import Decimal
import logging

from ..domain.models import ParkingSpot, VehicleCategory
from ..domain.aggregates import ParkingFacility, SpotRegistry
from ..domain.strategies import (
    PricingStrategy, PerMinutePricingStrategy, PerHourPricingStrategy
)
from ..application.gates import EntranceGate, ExitGate, PaymentProcessor
from ..application.parking_service import ParkingService
from .config import FacilitySettings
from .messaging import EventBus


class PricingStrategyFactory:
    """Factory for creating PricingStrategy instances"""

    strategy_map: Dict[str, Type[PricingStrategy]] = {
        PerMinutePricingStrategy.key: PerMinutePricingStrategy,
        PerHourPricingStrategy.key: PerHourPricingStrategy,
    }

    def __init__(self, rates: Optional[Dict[str, Decimal]] = None, currency: str = "USD"):
        self.rates = dict(rates or {})
        self.currency = currency

    def create_by_type(self, strategy_type: str) -> PricingStrategy:
        key = strategy_type.strip().lower().replace('-', '_')
        strategy_class = self.strategy_map.get(key)
        if not strategy_class:
            raise ValueError(f"Unknown pricing strategy type: {strategy_type}")
        return strategy_class(rate=self.rates.get(key), currency=self.currency)

    @classmethod
    def from_settings(cls, settings: FacilitySettings) -> 'PricingStrategyFactory':
        return cls(
            rates={
                PerMinutePricingStrategy.key: settings.per_minute_rate,
                PerHourPricingStrategy.key: settings.per_hour_rate,
            },
            currency=settings.currency
        )


class FacilityBuilder:
    """Builder pattern for constructing a facility and its gates"""

    def __init__(self):
        self.reset()

    def reset(self) -> 'FacilityBuilder':
        self.name = "Parking Facility"
        self.currency = "USD"
        self.spots: List[Tuple[int, VehicleCategory]] = []
        self.entrances: List[str] = []
        self.exits: List[Tuple[str, Union[str, PricingStrategy]]] = []
        self.pricing_factory = PricingStrategyFactory()
        self.clock: Optional[Callable[[], datetime]] = None
        self.payment_processor: Optional[PaymentProcessor] = None
        self.event_bus = EventBus()
        self._logger = logging.getLogger(self.__class__.__name__)
        return self

    def set_name(self, name: str) -> 'FacilityBuilder':
        self.name = name
        return self

    def set_clock(self, clock: Callable[[], datetime]) -> 'FacilityBuilder':
        self.clock = clock
        return self

    def set_payment_processor(self, processor: PaymentProcessor) -> 'FacilityBuilder':
        self.payment_processor = processor
        return self

    def set_event_bus(self, event_bus: EventBus) -> 'FacilityBuilder':
        self.event_bus = event_bus
        return self

    def set_pricing_factory(self, factory: PricingStrategyFactory) -> 'FacilityBuilder':
        self.pricing_factory = factory
        self.currency = factory.currency
        return self

    def add_spot(self, spot_id: int, category: Union[VehicleCategory, str]) -> 'FacilityBuilder':
        self.spots.append((spot_id, VehicleCategory.parse(category)))
        return self

    def add_spots(self, category: Union[VehicleCategory, str], count: int,
                  start_id: Optional[int] = None) -> 'FacilityBuilder':
        """Add count spots with consecutive ids"""
        next_id = start_id if start_id is not None else max((s[0] for s in self.spots), default=0) + 1
        for i in range(count):
            self.add_spot(next_id + i, category)
        return self

    def add_entrance(self, gate_id: str) -> 'FacilityBuilder':
        self.entrances.append(gate_id)
        return self

    def add_exit(self, gate_id: str, pricing: Union[str, PricingStrategy]) -> 'FacilityBuilder':
        self.exits.append((gate_id, pricing))
        return self

    def build(self) -> ParkingService:
        registry = SpotRegistry(ParkingSpot(spot_id, category) for spot_id, category in self.spots)
        facility = ParkingFacility(name=self.name, registry=registry, currency=self.currency)
        service = ParkingService(facility, event_publisher=self.event_bus)

        for gate_id in self.entrances:
            service.add_entrance(EntranceGate(gate_id, facility, clock=self.clock))

        for gate_id, pricing in self.exits:
            strategy = pricing if isinstance(pricing, PricingStrategy) \
                else self.pricing_factory.create_by_type(pricing)
            service.add_exit(ExitGate(
                gate_id,
                strategy,
                facility=facility,
                payment_processor=self.payment_processor,
                clock=self.clock
            ))

        self._logger.info(
            f"Built {facility.name}: {len(registry)} spots, "
            f"{len(self.entrances)} entrances, {len(self.exits)} exits"
        )
        return service

    @classmethod
    def from_settings(cls, settings: FacilitySettings,
                      clock: Optional[Callable[[], datetime]] = None) -> 'FacilityBuilder':
        builder = cls().set_name(settings.name)
        builder.set_pricing_factory(PricingStrategyFactory.from_settings(settings))
        if clock is not None:
            builder.set_clock(clock)
        for spot in settings.spots:
            builder.add_spot(spot.id, spot.category)
        for gate_id in settings.entrances:
            builder.add_entrance(gate_id)
        for gate in settings.exits:
            builder.add_exit(gate.id, gate.pricing)
        return builder
