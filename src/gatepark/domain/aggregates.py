# File: src/gatepark/domain/aggregates.py
"""
Aggregate Roots for the Gate Parking Simulator
Following Domain-Driven Design (DDD) Aggregate Pattern

Aggregates:
1. SpotRegistry - the shared arena of spots, keyed by spot id
2. ParkingFacility - root owning the registry, the active-ticket ledger and revenue

Key Concepts:
- Gates never toggle a spot directly; they go through the registry
- Every registry read and write happens under one re-entrant lock
- Domain events are raised for entries, exits and rejected entries
"""

from typing import List, Optional, Dict, Iterator, Iterable, Any
from datetime import datetime
import threading
import uuid
import logging

from .models import (
    ParkingSpot, Ticket, Vehicle, VehicleCategory, Money, DomainEvent,
    VehicleEnteredEvent, VehicleExitedEvent, EntryRejectedEvent
)
from .exceptions import (
    SpotNotFoundError, DuplicateSpotError, TicketAlreadyClosedError,
    VehicleAlreadyParkedError, InvalidTicketError
)


# ============================================================================
# BASE AGGREGATE ROOT
# ============================================================================

class AggregateRoot:
    """
    Base class for all aggregate roots
    Provides domain event collection and versioning
    """

    def __init__(self, id: Optional[str] = None):
        self._id = id or str(uuid.uuid4())
        self._version: int = 1
        self._changes: List[DomainEvent] = []
        self._events_lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def id(self) -> str:
        return self._id

    @property
    def version(self) -> int:
        return self._version

    def _increment_version(self) -> None:
        self._version += 1

    def _add_domain_event(self, event: DomainEvent) -> None:
        with self._events_lock:
            self._changes.append(event)
        self._logger.debug(f"Added domain event: {event.__class__.__name__}")

    def clear_events(self) -> List[DomainEvent]:
        """Clear and return all domain events"""
        with self._events_lock:
            events = self._changes.copy()
            self._changes.clear()
        return events

    @property
    def has_changes(self) -> bool:
        return len(self._changes) > 0


# ============================================================================
# SPOT REGISTRY
# ============================================================================

class SpotRegistry:
    """
    The shared collection of parking spots, keyed by id
    Searches run in ascending id order so the first match is deterministic
    """

    def __init__(self, spots: Optional[Iterable[ParkingSpot]] = None):
        self._spots: Dict[int, ParkingSpot] = {}
        self._lock = threading.RLock()
        self._logger = logging.getLogger(self.__class__.__name__)

        for spot in spots or []:
            self.add_spot(spot)

    def add_spot(self, spot: ParkingSpot) -> ParkingSpot:
        with self._lock:
            if spot.spot_id in self._spots:
                raise DuplicateSpotError(spot.spot_id)
            self._spots[spot.spot_id] = spot
        self._logger.debug(f"Registered {spot}")
        return spot

    def get_spot(self, spot_id: int) -> ParkingSpot:
        with self._lock:
            try:
                return self._spots[spot_id]
            except KeyError:
                raise SpotNotFoundError(spot_id) from None

    def find_free_spot(self, category: VehicleCategory) -> Optional[ParkingSpot]:
        """
        First free spot built for the category
        Returns: ParkingSpot if available, None otherwise
        """
        with self._lock:
            for spot_id in sorted(self._spots):
                spot = self._spots[spot_id]
                if spot.accepts(category):
                    return spot
        return None

    def occupy(self, spot_id: int) -> ParkingSpot:
        """Raises: IllegalSpotTransitionError if the spot is taken"""
        with self._lock:
            spot = self.get_spot(spot_id)
            spot.occupy()
        return spot

    def release(self, spot_id: int) -> ParkingSpot:
        """Raises: IllegalSpotTransitionError if the spot is already free"""
        with self._lock:
            spot = self.get_spot(spot_id)
            spot.free()
        return spot

    def claim_free_spot(self, category: VehicleCategory) -> Optional[ParkingSpot]:
        """Find and occupy in one step; None leaves the registry untouched"""
        with self._lock:
            spot = self.find_free_spot(category)
            if spot is not None:
                spot.occupy()
            return spot

    # ========================================================================
    # QUERY METHODS (Read-only)
    # ========================================================================

    def __iter__(self) -> Iterator[ParkingSpot]:
        with self._lock:
            spots = [self._spots[spot_id] for spot_id in sorted(self._spots)]
        return iter(spots)

    def __len__(self) -> int:
        return len(self._spots)

    def __contains__(self, spot_id: object) -> bool:
        return spot_id in self._spots

    def free_count(self, category: Optional[VehicleCategory] = None) -> int:
        return sum(
            1 for spot in self
            if not spot.is_occupied and (category is None or spot.category == category)
        )

    def occupied_count(self) -> int:
        return sum(1 for spot in self if spot.is_occupied)

    def status_report(self) -> Dict[str, Any]:
        by_category: Dict[str, Dict[str, int]] = {}
        for spot in self:
            counts = by_category.setdefault(
                spot.category.value, {"total": 0, "occupied": 0, "free": 0}
            )
            counts["total"] += 1
            counts["occupied" if spot.is_occupied else "free"] += 1

        return {
            "total_spots": len(self),
            "occupied_spots": self.occupied_count(),
            "free_spots": self.free_count(),
            "by_category": by_category,
            "spots": [spot.to_dict() for spot in self]
        }


# ============================================================================
# PARKING FACILITY AGGREGATE
# ============================================================================

class ParkingFacility(AggregateRoot):
    """
    Aggregate Root: one parking facility shared by all of its gates
    Tracks which tickets are open so a second exit on the same ticket is caught
    """

    def __init__(
        self,
        name: str = "Parking Facility",
        registry: Optional[SpotRegistry] = None,
        currency: str = "USD",
        id: Optional[str] = None
    ):
        super().__init__(id)
        self.name = name
        self.registry = registry if registry is not None else SpotRegistry()
        self.currency = currency
        self.total_revenue = Money.zero(currency)

        self._active_tickets: Dict[str, Ticket] = {}
        self._closed_tickets: List[Ticket] = []
        self._ticket_lock = threading.RLock()

    # ========================================================================
    # PUBLIC BUSINESS METHODS
    # ========================================================================

    def issue_ticket(self, vehicle: Vehicle, spot: ParkingSpot, entry_time: datetime) -> Ticket:
        """
        Record the start of a stay
        Raises: VehicleAlreadyParkedError if the plate holds an open ticket
        """
        with self._ticket_lock:
            existing = self.find_active_ticket(vehicle.license_plate.value)
            if existing is not None:
                raise VehicleAlreadyParkedError(vehicle.license_plate.value, existing.ticket_number)

            ticket = Ticket(vehicle, spot, entry_time)
            self._active_tickets[ticket.ticket_number] = ticket
            self._increment_version()

        self._add_domain_event(VehicleEnteredEvent(
            ticket_number=ticket.ticket_number,
            license_plate=vehicle.license_plate.value,
            spot_id=spot.spot_id,
            entry_time=entry_time
        ))
        self._logger.info(
            f"Vehicle {vehicle.license_plate} parked in spot {spot.spot_id} "
            f"(Ticket: {ticket.ticket_number})"
        )
        return ticket

    def close_ticket(
        self,
        ticket: Ticket,
        exit_time: datetime,
        fee: Money,
        gate_id: Optional[str] = None
    ) -> Ticket:
        """
        Close and archive an open ticket, adding its fee to revenue
        Raises: InvalidTicketError for a ticket this facility never issued,
        TicketAlreadyClosedError if it was already closed
        """
        if ticket is None:
            raise InvalidTicketError()

        with self._ticket_lock:
            if not self.was_issued(ticket):
                raise InvalidTicketError(f"Ticket {ticket.ticket_number} was not issued by {self.name}")
            if self._active_tickets.get(ticket.ticket_number) is not ticket:
                raise TicketAlreadyClosedError(ticket.ticket_number)

            ticket.close(exit_time, fee, gate_id)
            del self._active_tickets[ticket.ticket_number]
            self._closed_tickets.append(ticket)
            self.total_revenue = self.total_revenue + fee
            self._increment_version()

        self._add_domain_event(VehicleExitedEvent(
            ticket_number=ticket.ticket_number,
            license_plate=ticket.vehicle.license_plate.value,
            spot_id=ticket.spot.spot_id,
            exit_time=exit_time,
            fee=fee,
            gate_id=gate_id
        ))
        return ticket

    def is_open(self, ticket: Ticket) -> bool:
        with self._ticket_lock:
            return self._active_tickets.get(ticket.ticket_number) is ticket

    def was_issued(self, ticket: Ticket) -> bool:
        """True for open and archived tickets of this facility"""
        with self._ticket_lock:
            return self.is_open(ticket) or any(t is ticket for t in self._closed_tickets)

    def record_rejected_entry(self, vehicle: Vehicle, reason: str,
                              occurred_at: Optional[datetime] = None) -> None:
        self._add_domain_event(EntryRejectedEvent(
            license_plate=vehicle.license_plate.value,
            category=vehicle.category,
            reason=reason,
            occurred_at=occurred_at
        ))

    # ========================================================================
    # QUERY METHODS (Read-only)
    # ========================================================================

    def find_active_ticket(self, license_plate: str) -> Optional[Ticket]:
        plate = license_plate.strip().upper()
        with self._ticket_lock:
            for ticket in self._active_tickets.values():
                if ticket.vehicle.license_plate.value == plate:
                    return ticket
        return None

    def active_tickets(self) -> List[Ticket]:
        with self._ticket_lock:
            return list(self._active_tickets.values())

    def closed_tickets(self) -> List[Ticket]:
        with self._ticket_lock:
            return list(self._closed_tickets)

    def status_report(self) -> Dict[str, Any]:
        report = self.registry.status_report()
        report.update({
            "facility_id": self.id,
            "name": self.name,
            "active_tickets": len(self.active_tickets()),
            "closed_tickets": len(self.closed_tickets()),
            "total_revenue": self.total_revenue.to_dict()
        })
        return report

    def __str__(self) -> str:
        return (
            f"{self.name}: {self.registry.occupied_count()}/{len(self.registry)} occupied, "
            f"revenue {self.total_revenue.format()}"
        )
