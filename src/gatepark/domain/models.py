# File: src/gatepark/domain/models.py
"""
Domain Models for the Gate Parking Simulator
Following Domain-Driven Design (DDD) principles with rich domain models

This module contains:
1. Value Objects: LicensePlate, Money, Vehicle
2. Entities: ParkingSpot, Ticket
3. Enums: VehicleCategory, TicketStatus
4. Domain Events: VehicleEnteredEvent, VehicleExitedEvent, EntryRejectedEvent

Spots only change occupancy through occupy()/free(); a ticket is closed
exactly once.
"""

from abc import ABC
from dataclasses import dataclass
from typing import Optional, Dict, Any, Union
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
import re
import uuid

from .exceptions import IllegalSpotTransitionError, TicketAlreadyClosedError


CENTS = Decimal('0.01')


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class VehicleCategory(Enum):
    """
    Enumeration of vehicle categories
    A spot accepts exactly one category, fixed when the spot is created
    """
    TWO_WHEELER = "two_wheeler"
    FOUR_WHEELER = "four_wheeler"
    THREE_WHEELER = "three_wheeler"  # reserved, no spots in the default layout

    @classmethod
    def parse(cls, value: Union['VehicleCategory', str]) -> 'VehicleCategory':
        """Accept an enum member or a case-insensitive name/value"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace('-', '_').replace(' ', '_')
            for member in cls:
                if key in (member.value, member.name.lower()):
                    return member
        raise ValueError(f"Unknown vehicle category: {value!r}")

    def __str__(self) -> str:
        names = {
            VehicleCategory.TWO_WHEELER: "Two-wheeler",
            VehicleCategory.FOUR_WHEELER: "Four-wheeler",
            VehicleCategory.THREE_WHEELER: "Three-wheeler",
        }
        return names.get(self, self.value.replace('_', ' ').title())


class TicketStatus(Enum):
    ACTIVE = "active"      # Vehicle is inside
    CLOSED = "closed"      # Exit processed


# ============================================================================
# VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)
class LicensePlate:
    """
    Value Object: License plate number with validation
    Represents the identifier printed on a ticket
    """
    value: str

    def __post_init__(self):
        if not self.value or not self.value.strip():
            raise ValueError("License plate cannot be empty")

        object.__setattr__(self, 'value', self.value.strip().upper())

        if len(self.value) < 2 or len(self.value) > 15:
            raise ValueError(f"License plate must be 2-15 characters, got: {self.value}")

        if not re.match(r'^[A-Z0-9\s\-]+$', self.value):
            raise ValueError(
                f"License plate can only contain letters, numbers, spaces, and hyphens: {self.value}"
            )

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Money:
    """
    Value Object: Monetary amount with currency
    Decimal based so fees never drift
    """
    amount: Decimal
    currency: str = "USD"

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        if self.amount < Decimal('0'):
            raise ValueError("Money amount cannot be negative")

        if len(self.currency) != 3:
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

    @classmethod
    def zero(cls, currency: str = "USD") -> 'Money':
        return cls(Decimal('0.00'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money amounts (same currency only)"""
        if self.currency != other.currency:
            raise ValueError(f"Cannot add {self.currency} to {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, multiplier: Union[Decimal, int]) -> 'Money':
        """Multiply money by a non-negative number of units"""
        multiplier = Decimal(multiplier)
        if multiplier < Decimal('0'):
            raise ValueError("Multiplier cannot be negative")
        return Money(self.amount * multiplier, self.currency)

    def rounded(self) -> 'Money':
        """Round to cents, half up"""
        return Money(self.amount.quantize(CENTS, rounding=ROUND_HALF_UP), self.currency)

    def format(self) -> str:
        return f"${self.amount:.2f} {self.currency}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": str(self.amount),
            "currency": self.currency
        }

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True)
class Vehicle:
    """
    Value Object: a vehicle is its plate plus its category
    Plain strings are accepted and normalised on construction
    """
    license_plate: LicensePlate
    category: VehicleCategory

    def __post_init__(self):
        if not isinstance(self.license_plate, LicensePlate):
            object.__setattr__(self, 'license_plate', LicensePlate(str(self.license_plate)))
        object.__setattr__(self, 'category', VehicleCategory.parse(self.category))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "license_plate": self.license_plate.value,
            "category": self.category.value
        }

    def __str__(self) -> str:
        return f"{self.category} {self.license_plate}"


# ============================================================================
# DOMAIN ENTITIES
# ============================================================================

class Entity:
    """
    Base class for all domain entities
    Provides common functionality for entities with identity
    """

    def __init__(self, id: Optional[str] = None):
        self._id = id or str(uuid.uuid4())

    @property
    def id(self) -> str:
        return self._id

    def __eq__(self, other: object) -> bool:
        """Entities are equal if they have the same ID and type"""
        if not isinstance(other, Entity):
            return False
        return self.id == other.id and type(self) == type(other)

    def __hash__(self) -> int:
        return hash((self.id, type(self).__name__))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id})"


class ParkingSpot(Entity):
    """
    Entity: a single parking space
    Category is fixed at creation; occupancy only moves through occupy()/free()
    """

    def __init__(self, spot_id: int, category: Union[VehicleCategory, str]):
        if not isinstance(spot_id, int) or isinstance(spot_id, bool) or spot_id <= 0:
            raise ValueError(f"Spot id must be a positive integer, got: {spot_id!r}")

        super().__init__(f"spot-{spot_id}")
        self._spot_id = spot_id
        self._category = VehicleCategory.parse(category)
        self._occupied = False

    @property
    def spot_id(self) -> int:
        return self._spot_id

    @property
    def category(self) -> VehicleCategory:
        return self._category

    @property
    def is_occupied(self) -> bool:
        return self._occupied

    def accepts(self, category: VehicleCategory) -> bool:
        """True if this spot is free and built for the category"""
        return not self._occupied and self._category == category

    def occupy(self) -> None:
        """
        Mark the spot occupied
        Raises: IllegalSpotTransitionError if already occupied
        """
        if self._occupied:
            raise IllegalSpotTransitionError(self._spot_id, occupied=True)
        self._occupied = True

    def free(self) -> None:
        """
        Mark the spot free
        Raises: IllegalSpotTransitionError if already free
        """
        if not self._occupied:
            raise IllegalSpotTransitionError(self._spot_id, occupied=False)
        self._occupied = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spot_id": self._spot_id,
            "category": self._category.value,
            "is_occupied": self._occupied
        }

    def __repr__(self) -> str:
        return f"ParkingSpot(spot_id={self._spot_id}, category={self._category.value}, occupied={self._occupied})"

    def __str__(self) -> str:
        status = "Occupied" if self._occupied else "Free"
        return f"Spot {self._spot_id} - {self._category} - {status}"


class Ticket(Entity):
    """
    Entity: binds a vehicle's stay in a spot to its entry time
    Vehicle, spot and entry time never change; exit fields are written once by close()
    """

    def __init__(
        self,
        vehicle: Vehicle,
        spot: ParkingSpot,
        entry_time: datetime,
        ticket_number: Optional[str] = None,
        id: Optional[str] = None
    ):
        super().__init__(id)
        self._vehicle = vehicle
        self._spot = spot
        self._entry_time = entry_time
        self._ticket_number = ticket_number or self._generate_ticket_number(entry_time)

        self.status: TicketStatus = TicketStatus.ACTIVE
        self.exit_time: Optional[datetime] = None
        self.fee: Optional[Money] = None
        self.exit_gate_id: Optional[str] = None

    @staticmethod
    def _generate_ticket_number(entry_time: datetime) -> str:
        """Generate a unique ticket number"""
        timestamp = entry_time.strftime("%Y%m%d%H%M%S")
        unique_id = str(uuid.uuid4())[:8].upper()
        return f"TKT-{timestamp}-{unique_id}"

    @property
    def ticket_number(self) -> str:
        return self._ticket_number

    @property
    def vehicle(self) -> Vehicle:
        return self._vehicle

    @property
    def spot(self) -> ParkingSpot:
        return self._spot

    @property
    def entry_time(self) -> datetime:
        return self._entry_time

    @property
    def is_active(self) -> bool:
        return self.status == TicketStatus.ACTIVE

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        """Time parked so far, or total time once closed"""
        end = self.exit_time or now or datetime.now()
        return end - self._entry_time

    def close(self, exit_time: datetime, fee: Money, gate_id: Optional[str] = None) -> None:
        """
        Record the exit
        Raises: TicketAlreadyClosedError on a second close
        """
        if self.status != TicketStatus.ACTIVE:
            raise TicketAlreadyClosedError(self._ticket_number)

        self.exit_time = exit_time
        self.fee = fee
        self.exit_gate_id = gate_id
        self.status = TicketStatus.CLOSED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticket_number": self._ticket_number,
            "vehicle": self._vehicle.to_dict(),
            "spot_id": self._spot.spot_id,
            "entry_time": self._entry_time.isoformat(),
            "status": self.status.value,
            "exit_time": self.exit_time.isoformat() if self.exit_time else None,
            "fee": self.fee.to_dict() if self.fee else None,
            "exit_gate_id": self.exit_gate_id
        }

    def __str__(self) -> str:
        return f"Ticket {self._ticket_number}: {self._vehicle} in spot {self._spot.spot_id}"


# ============================================================================
# DOMAIN EVENTS
# ============================================================================

class DomainEvent(ABC):
    """Base class for domain events"""

    def __init__(self, occurred_at: Optional[datetime] = None):
        self.event_id = str(uuid.uuid4())
        self.occurred_at = occurred_at or datetime.now()
        self.event_type = self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat()
        }

    def __str__(self) -> str:
        return f"{self.event_type} at {self.occurred_at}"


class VehicleEnteredEvent(DomainEvent):
    def __init__(self, ticket_number: str, license_plate: str, spot_id: int, entry_time: datetime):
        super().__init__(entry_time)
        self.ticket_number = ticket_number
        self.license_plate = license_plate
        self.spot_id = spot_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "ticket_number": self.ticket_number,
            "license_plate": self.license_plate,
            "spot_id": self.spot_id
        })
        return data


class VehicleExitedEvent(DomainEvent):
    def __init__(
        self,
        ticket_number: str,
        license_plate: str,
        spot_id: int,
        exit_time: datetime,
        fee: Money,
        gate_id: Optional[str] = None
    ):
        super().__init__(exit_time)
        self.ticket_number = ticket_number
        self.license_plate = license_plate
        self.spot_id = spot_id
        self.fee = fee
        self.gate_id = gate_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "ticket_number": self.ticket_number,
            "license_plate": self.license_plate,
            "spot_id": self.spot_id,
            "fee": self.fee.to_dict(),
            "gate_id": self.gate_id
        })
        return data


class EntryRejectedEvent(DomainEvent):
    def __init__(self, license_plate: str, category: VehicleCategory, reason: str,
                 occurred_at: Optional[datetime] = None):
        super().__init__(occurred_at)
        self.license_plate = license_plate
        self.category = category
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "license_plate": self.license_plate,
            "category": self.category.value,
            "reason": self.reason
        })
        return data
