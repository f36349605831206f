# File: src/gatepark/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Gate Parking Simulator

Every gate operation reports an explicit outcome: a success flag, a reason
code and a human message. Expected failures (no free spot, invalid or
already-closed ticket, illegal spot transition) are values here, never
exceptions.

DTO Principles:
- Validation at creation
- No business logic, only data
- Serialization support through pydantic
"""

from typing import Dict, List, Optional, Any
from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import Money, ParkingSpot, Ticket


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to dictionary"""
        data = self.model_dump(**kwargs)
        if exclude_none:
            data = {k: v for k, v in data.items() if v is not None}
        return data

    def to_json(self, **kwargs) -> str:
        return self.model_dump_json(**kwargs)


# ============================================================================
# ENUM DTOs
# ============================================================================

class OutcomeReason(str, Enum):
    """Why a gate operation succeeded or failed"""
    OK = "ok"
    NO_SPOT_AVAILABLE = "no_spot_available"
    INVALID_TICKET = "invalid_ticket"
    TICKET_ALREADY_CLOSED = "ticket_already_closed"
    ILLEGAL_TRANSITION = "illegal_transition"
    VEHICLE_ALREADY_PARKED = "vehicle_already_parked"
    SPOT_NOT_FOUND = "spot_not_found"


# ============================================================================
# VALUE DTOs
# ============================================================================

class MoneyDTO(BaseDTO):
    amount: Decimal = Field(ge=0, description="Amount")
    currency: str = Field(default="USD", min_length=3, max_length=3)

    @classmethod
    def from_money(cls, money: Money) -> 'MoneyDTO':
        return cls(amount=money.amount, currency=money.currency)

    def to_money(self) -> Money:
        return Money(self.amount, self.currency)


class SpotDTO(BaseDTO):
    spot_id: int = Field(gt=0, description="Spot number")
    category: str = Field(description="Vehicle category the spot accepts")
    is_occupied: bool

    @classmethod
    def from_spot(cls, spot: ParkingSpot) -> 'SpotDTO':
        return cls(spot_id=spot.spot_id, category=spot.category.value, is_occupied=spot.is_occupied)


class TicketDTO(BaseDTO):
    ticket_number: str
    license_plate: str
    category: str
    spot_id: int
    entry_time: datetime
    status: str
    exit_time: Optional[datetime] = None
    fee: Optional[MoneyDTO] = None

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> 'TicketDTO':
        return cls(
            ticket_number=ticket.ticket_number,
            license_plate=ticket.vehicle.license_plate.value,
            category=ticket.vehicle.category.value,
            spot_id=ticket.spot.spot_id,
            entry_time=ticket.entry_time,
            status=ticket.status.value,
            exit_time=ticket.exit_time,
            fee=MoneyDTO.from_money(ticket.fee) if ticket.fee else None
        )


class PaymentReceipt(BaseDTO):
    """Result of a (simulated) payment"""
    success: bool
    reference: Optional[str] = None
    amount: MoneyDTO
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


# ============================================================================
# GATE RESULT DTOs
# ============================================================================

class OccupancyResultDTO(BaseDTO):
    """Result of a direct occupy/free request on a spot"""
    success: bool
    reason: OutcomeReason = OutcomeReason.OK
    spot: Optional[SpotDTO] = None
    message: Optional[str] = None


class EntryResultDTO(BaseDTO):
    """Result of admitting a vehicle at an entrance gate"""
    success: bool
    reason: OutcomeReason = OutcomeReason.OK
    gate_id: Optional[str] = None
    ticket: Optional[Any] = Field(default=None, exclude=True, description="Live Ticket entity")
    ticket_number: Optional[str] = None
    ticket_details: Optional[TicketDTO] = None
    spot_id: Optional[int] = None
    license_plate: Optional[str] = None
    entry_time: Optional[datetime] = None
    message: Optional[str] = None


class ExitResultDTO(BaseDTO):
    """Result of processing a ticket at an exit gate"""
    success: bool
    reason: OutcomeReason = OutcomeReason.OK
    gate_id: Optional[str] = None
    ticket_number: Optional[str] = None
    ticket_details: Optional[TicketDTO] = None
    license_plate: Optional[str] = None
    spot_id: Optional[int] = None
    exit_time: Optional[datetime] = None
    duration_seconds: Optional[float] = Field(default=None, ge=0)
    fee: Optional[MoneyDTO] = None
    payment: Optional[PaymentReceipt] = None
    message: Optional[str] = None


class FacilityStatusDTO(BaseDTO):
    """Snapshot of a facility and its gates"""
    facility_id: str
    name: str
    total_spots: int
    occupied_spots: int
    free_spots: int
    by_category: Dict[str, Dict[str, int]]
    spots: List[SpotDTO]
    active_tickets: int
    closed_tickets: int
    total_revenue: MoneyDTO
    entrances: List[str] = Field(default_factory=list)
    exits: Dict[str, str] = Field(default_factory=dict, description="Exit gate id to pricing")
    timestamp: datetime = Field(default_factory=datetime.now)
