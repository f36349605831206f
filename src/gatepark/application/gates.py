# File: src/gatepark/application/gates.py
"""
Entrance and Exit Gates

EntranceGate finds a free spot of the right category in the shared registry,
occupies it and issues a ticket. ExitGate prices a ticket with the strategy it
was built with, takes a (simulated) payment and frees the spot.

Spot release on exit does not depend on the payment outcome; payment is
advisory and only logged. Expected domain failures come back as result DTOs.
"""

from typing import Callable, Optional, Protocol, runtime_checkable
from datetime import datetime
import logging
import uuid

from ..domain.models import Money, ParkingSpot, Ticket, Vehicle, VehicleCategory
from ..domain.aggregates import ParkingFacility
from ..domain.strategies import PricingStrategy
from ..domain.exceptions import (
    ParkingDomainError, IllegalSpotTransitionError, SpotNotFoundError,
    TicketAlreadyClosedError, VehicleAlreadyParkedError, NoSpotAvailableError,
    InvalidTicketError
)
from .dtos import (
    OutcomeReason, SpotDTO, MoneyDTO, TicketDTO, PaymentReceipt,
    OccupancyResultDTO, EntryResultDTO, ExitResultDTO
)


Clock = Callable[[], datetime]


# ============================================================================
# PAYMENT
# ============================================================================

@runtime_checkable
class PaymentProcessor(Protocol):
    """Interface for taking payment at an exit gate"""

    def charge(self, ticket: Ticket, amount: Money) -> PaymentReceipt:
        ...


class SimulatedPaymentProcessor:
    """Always succeeds; no money moves"""

    def __init__(self, clock: Optional[Clock] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._clock = clock or datetime.now

    def charge(self, ticket: Ticket, amount: Money) -> PaymentReceipt:
        now = self._clock()
        reference = f"PAY-{now.strftime('%Y%m%d-%H%M%S')}-{str(uuid.uuid4())[:6].upper()}"
        self.logger.info(f"Simulated payment {reference} of {amount.format()} for {ticket.ticket_number}")
        return PaymentReceipt(
            success=True,
            reference=reference,
            amount=MoneyDTO.from_money(amount),
            message="Payment simulated",
            timestamp=now
        )


# ============================================================================
# ENTRANCE GATE
# ============================================================================

class EntranceGate:
    """
    Entrance controller: assigns spots from the facility's shared registry
    """

    def __init__(self, gate_id: str, facility: ParkingFacility, clock: Optional[Clock] = None):
        if not gate_id:
            raise ValueError("Gate id cannot be empty")
        self.gate_id = gate_id
        self.facility = facility
        self._clock = clock or datetime.now
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def registry(self):
        return self.facility.registry

    def find_spot(self, category: VehicleCategory) -> Optional[ParkingSpot]:
        """
        First free spot for the category
        Returns: ParkingSpot, or None when nothing matches (not an error)
        """
        category = VehicleCategory.parse(category)
        spot = self.registry.find_free_spot(category)
        self.logger.debug(
            f"[{self.gate_id}] search for {category}: "
            f"{'spot ' + str(spot.spot_id) if spot else 'none'}"
        )
        return spot

    def set_occupancy(self, spot: ParkingSpot, occupy: bool) -> OccupancyResultDTO:
        """
        Occupy or free a spot through the registry
        Illegal transitions and unknown spots fail without touching anything
        Returns: result carrying the registry's view of the spot
        """
        try:
            if occupy:
                current = self.registry.occupy(spot.spot_id)
            else:
                current = self.registry.release(spot.spot_id)
        except ParkingDomainError as e:
            self.logger.warning(f"[{self.gate_id}] {e.message}")
            if isinstance(e, SpotNotFoundError):
                return OccupancyResultDTO(
                    success=False,
                    reason=OutcomeReason.SPOT_NOT_FOUND,
                    message=e.message
                )
            return OccupancyResultDTO(
                success=False,
                reason=OutcomeReason.ILLEGAL_TRANSITION,
                spot=SpotDTO.from_spot(self.registry.get_spot(spot.spot_id)),
                message=e.message
            )

        state = "occupied" if occupy else "free"
        return OccupancyResultDTO(
            success=True,
            spot=SpotDTO.from_spot(current),
            message=f"Spot {current.spot_id} is now {state}"
        )

    def admit(self, vehicle: Vehicle, entry_time: Optional[datetime] = None) -> EntryResultDTO:
        """
        Assign a spot and issue a ticket
        Returns a failed result, with nothing changed, when no spot is free
        """
        entry_time = entry_time or self._clock()
        plate = vehicle.license_plate.value

        existing = self.facility.find_active_ticket(plate)
        if existing is not None:
            message = VehicleAlreadyParkedError(plate, existing.ticket_number).message
            self.logger.warning(f"[{self.gate_id}] {message}")
            self.facility.record_rejected_entry(vehicle, OutcomeReason.VEHICLE_ALREADY_PARKED.value, entry_time)
            return EntryResultDTO(
                success=False,
                reason=OutcomeReason.VEHICLE_ALREADY_PARKED,
                gate_id=self.gate_id,
                license_plate=plate,
                message=message
            )

        spot = self.registry.claim_free_spot(vehicle.category)
        if spot is None:
            message = NoSpotAvailableError(str(vehicle.category)).message
            self.logger.info(f"[{self.gate_id}] {message} ({plate})")
            self.facility.record_rejected_entry(vehicle, OutcomeReason.NO_SPOT_AVAILABLE.value, entry_time)
            return EntryResultDTO(
                success=False,
                reason=OutcomeReason.NO_SPOT_AVAILABLE,
                gate_id=self.gate_id,
                license_plate=plate,
                message=message
            )

        try:
            ticket = self.facility.issue_ticket(vehicle, spot, entry_time)
        except VehicleAlreadyParkedError as e:
            # another gate admitted the same plate in between
            self.registry.release(spot.spot_id)
            self.logger.warning(f"[{self.gate_id}] {e.message}")
            return EntryResultDTO(
                success=False,
                reason=OutcomeReason.VEHICLE_ALREADY_PARKED,
                gate_id=self.gate_id,
                license_plate=plate,
                message=e.message
            )

        return EntryResultDTO(
            success=True,
            gate_id=self.gate_id,
            ticket=ticket,
            ticket_number=ticket.ticket_number,
            ticket_details=TicketDTO.from_ticket(ticket),
            spot_id=spot.spot_id,
            license_plate=plate,
            entry_time=entry_time,
            message=f"Vehicle {plate} parked at spot {spot.spot_id}"
        )

    def __str__(self) -> str:
        return f"EntranceGate {self.gate_id}"


# ============================================================================
# EXIT GATE
# ============================================================================

class ExitGate:
    """
    Exit controller: prices a ticket with its bound strategy and frees the spot
    """

    def __init__(
        self,
        gate_id: str,
        pricing_strategy: PricingStrategy,
        facility: ParkingFacility,
        payment_processor: Optional[PaymentProcessor] = None,
        clock: Optional[Clock] = None
    ):
        if not gate_id:
            raise ValueError("Gate id cannot be empty")
        self.gate_id = gate_id
        self.pricing_strategy = pricing_strategy
        self.facility = facility
        self._clock = clock or datetime.now
        self.payment_processor = payment_processor or SimulatedPaymentProcessor(self._clock)
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def registry(self):
        return self.facility.registry

    def calculate_fee(self, ticket: Ticket, exit_time: Optional[datetime] = None) -> Money:
        return self.pricing_strategy.calculate_fee(ticket.entry_time, exit_time or self._clock())

    def process_exit(self, ticket: Optional[Ticket], exit_time: Optional[datetime] = None) -> ExitResultDTO:
        """
        Price the stay, take payment and free the spot
        Returns: failed result for a missing, unknown or already closed ticket,
        with no state change
        """
        if ticket is None:
            return self._invalid_ticket(InvalidTicketError())
        if not self.facility.was_issued(ticket):
            error = InvalidTicketError(f"Ticket {ticket.ticket_number} was not issued by {self.facility.name}")
            return self._invalid_ticket(error, ticket.ticket_number)

        if not self.facility.is_open(ticket):
            return self._already_closed(ticket, TicketAlreadyClosedError(ticket.ticket_number))

        exit_time = exit_time or self._clock()
        fee = self.calculate_fee(ticket, exit_time)
        self.logger.info(f"[{self.gate_id}] Payment due for {ticket.ticket_number}: {fee.format()}")

        receipt = self._charge(ticket, fee)
        self._release_spot(ticket.spot)

        try:
            self.facility.close_ticket(ticket, exit_time, fee, self.gate_id)
        except TicketAlreadyClosedError as e:
            # closed by another gate after the check above
            return self._already_closed(ticket, e)

        plate = ticket.vehicle.license_plate.value
        self.logger.info(
            f"[{self.gate_id}] Vehicle with license {plate} exited. "
            f"Spot {ticket.spot.spot_id} is now free."
        )
        return ExitResultDTO(
            success=True,
            gate_id=self.gate_id,
            ticket_number=ticket.ticket_number,
            ticket_details=TicketDTO.from_ticket(ticket),
            license_plate=plate,
            spot_id=ticket.spot.spot_id,
            exit_time=exit_time,
            duration_seconds=max(0.0, (exit_time - ticket.entry_time).total_seconds()),
            fee=MoneyDTO.from_money(fee),
            payment=receipt,
            message=f"Vehicle {plate} exited from spot {ticket.spot.spot_id}. Fee: {fee.format()}"
        )

    def _invalid_ticket(self, error: InvalidTicketError,
                        ticket_number: Optional[str] = None) -> ExitResultDTO:
        self.logger.warning(f"[{self.gate_id}] {error.message}")
        return ExitResultDTO(
            success=False,
            reason=OutcomeReason.INVALID_TICKET,
            gate_id=self.gate_id,
            ticket_number=ticket_number,
            message=error.message
        )

    def _already_closed(self, ticket: Ticket, error: TicketAlreadyClosedError) -> ExitResultDTO:
        self.logger.warning(f"[{self.gate_id}] {error.message}")
        return ExitResultDTO(
            success=False,
            reason=OutcomeReason.TICKET_ALREADY_CLOSED,
            gate_id=self.gate_id,
            ticket_number=ticket.ticket_number,
            license_plate=ticket.vehicle.license_plate.value,
            spot_id=ticket.spot.spot_id,
            message=error.message
        )

    def _charge(self, ticket: Ticket, fee: Money) -> PaymentReceipt:
        """Payment never blocks the exit; failures become a failed receipt"""
        try:
            receipt = self.payment_processor.charge(ticket, fee)
        except Exception as e:
            self.logger.error(f"[{self.gate_id}] Payment error for {ticket.ticket_number}: {e}")
            return PaymentReceipt(
                success=False,
                amount=MoneyDTO.from_money(fee),
                message=f"Payment error: {e}"
            )

        if not receipt.success:
            self.logger.warning(
                f"[{self.gate_id}] Payment failed for {ticket.ticket_number}: {receipt.message}"
            )
        return receipt

    def _release_spot(self, spot: ParkingSpot) -> None:
        try:
            self.registry.release(spot.spot_id)
        except IllegalSpotTransitionError:
            self.logger.warning(f"[{self.gate_id}] Spot {spot.spot_id} was already free on exit")

    def __str__(self) -> str:
        return f"ExitGate {self.gate_id} ({self.pricing_strategy})"
