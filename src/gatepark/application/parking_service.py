# File: src/gatepark/application/parking_service.py
"""
Parking Application Service

Thin façade over one ParkingFacility and its gates. Callers address gates by
id; the service forwards to the right EntranceGate or ExitGate and exposes
status queries.

Responsibilities:
1. Keep the gate registry for a facility
2. Route entry and exit requests to gates
3. Publish the facility's domain events after every use case
4. Provide read-only status snapshots
"""

from typing import Dict, List, Optional, Protocol
from datetime import datetime
import logging

from ..domain.models import DomainEvent, Vehicle, Ticket
from ..domain.aggregates import ParkingFacility
from .dtos import (
    EntryResultDTO, ExitResultDTO, FacilityStatusDTO, MoneyDTO, SpotDTO,
    OutcomeReason
)
from .gates import EntranceGate, ExitGate


class UnknownGateError(KeyError):
    """Gate id not registered with the service"""

    def __init__(self, gate_id: str):
        super().__init__(gate_id)
        self.gate_id = gate_id

    def __str__(self) -> str:
        return f"Unknown gate: {self.gate_id}"


class EventPublisher(Protocol):
    def publish(self, event: DomainEvent) -> None:
        ...


class ParkingService:
    """Application service for a single facility"""

    def __init__(self, facility: ParkingFacility, event_publisher: Optional[EventPublisher] = None):
        self.facility = facility
        self.event_publisher = event_publisher
        self._entrances: Dict[str, EntranceGate] = {}
        self._exits: Dict[str, ExitGate] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    # ========================================================================
    # GATE REGISTRATION
    # ========================================================================

    def add_entrance(self, gate: EntranceGate) -> EntranceGate:
        if gate.facility is not self.facility:
            raise ValueError(f"Entrance {gate.gate_id} belongs to another facility")
        if gate.gate_id in self._entrances:
            raise ValueError(f"Entrance {gate.gate_id} already registered")
        self._entrances[gate.gate_id] = gate
        self.logger.info(f"Registered {gate}")
        return gate

    def add_exit(self, gate: ExitGate) -> ExitGate:
        if gate.facility is not self.facility:
            raise ValueError(f"Exit {gate.gate_id} belongs to another facility")
        if gate.gate_id in self._exits:
            raise ValueError(f"Exit {gate.gate_id} already registered")
        self._exits[gate.gate_id] = gate
        self.logger.info(f"Registered {gate}")
        return gate

    def entrance(self, gate_id: str) -> EntranceGate:
        try:
            return self._entrances[gate_id]
        except KeyError:
            raise UnknownGateError(gate_id) from None

    def exit_gate(self, gate_id: str) -> ExitGate:
        try:
            return self._exits[gate_id]
        except KeyError:
            raise UnknownGateError(gate_id) from None

    @property
    def entrance_ids(self) -> List[str]:
        return list(self._entrances)

    @property
    def exit_ids(self) -> List[str]:
        return list(self._exits)

    # ========================================================================
    # USE CASES
    # ========================================================================

    def enter(self, vehicle: Vehicle, entrance_id: str,
              entry_time: Optional[datetime] = None) -> EntryResultDTO:
        result = self.entrance(entrance_id).admit(vehicle, entry_time)
        self._publish_events()
        return result

    def exit(self, ticket: Optional[Ticket], exit_id: str,
             exit_time: Optional[datetime] = None) -> ExitResultDTO:
        result = self.exit_gate(exit_id).process_exit(ticket, exit_time)
        self._publish_events()
        return result

    def exit_by_plate(self, license_plate: str, exit_id: str,
                      exit_time: Optional[datetime] = None) -> ExitResultDTO:
        """Exit for a lost ticket, looked up by plate"""
        gate = self.exit_gate(exit_id)
        ticket = self.facility.find_active_ticket(license_plate)
        if ticket is None:
            return ExitResultDTO(
                success=False,
                reason=OutcomeReason.INVALID_TICKET,
                gate_id=exit_id,
                license_plate=license_plate.strip().upper(),
                message=f"No active ticket for {license_plate.strip().upper()}"
            )
        result = gate.process_exit(ticket, exit_time)
        self._publish_events()
        return result

    def _publish_events(self) -> int:
        """Drain pending domain events from the facility"""
        events = self.facility.clear_events()
        for event in events:
            if self.event_publisher is not None:
                self.event_publisher.publish(event)
            else:
                self.logger.debug(f"Domain event: {event.event_type} {event.to_dict()}")
        return len(events)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def status(self) -> FacilityStatusDTO:
        report = self.facility.status_report()
        return FacilityStatusDTO(
            facility_id=report["facility_id"],
            name=report["name"],
            total_spots=report["total_spots"],
            occupied_spots=report["occupied_spots"],
            free_spots=report["free_spots"],
            by_category=report["by_category"],
            spots=[SpotDTO.from_spot(spot) for spot in self.facility.registry],
            active_tickets=report["active_tickets"],
            closed_tickets=report["closed_tickets"],
            total_revenue=MoneyDTO.from_money(self.facility.total_revenue),
            entrances=self.entrance_ids,
            exits={gate_id: gate.pricing_strategy.key for gate_id, gate in self._exits.items()}
        )
