# File: src/gatepark/domain/exceptions.py
"""
Domain Exceptions for the Gate Parking Simulator

Expected business failures are raised as ParkingDomainError subclasses.
The application layer translates them into explicit result DTOs.
"""

from typing import Optional


class ParkingDomainError(Exception):
    """Base class for all domain rule violations"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoSpotAvailableError(ParkingDomainError):
    """No free spot matches the requested vehicle category"""

    def __init__(self, category: str):
        super().__init__(f"No parking spot available for {category}")
        self.category = category


class InvalidTicketError(ParkingDomainError):
    """Ticket reference is missing or unusable"""

    def __init__(self, message: str = "Invalid ticket"):
        super().__init__(message)


class TicketAlreadyClosedError(ParkingDomainError):
    """Exit was already processed for this ticket"""

    def __init__(self, ticket_number: str):
        super().__init__(f"Ticket {ticket_number} is already closed")
        self.ticket_number = ticket_number


class IllegalSpotTransitionError(ParkingDomainError):
    """Occupy on an occupied spot or free on a free spot"""

    def __init__(self, spot_id: int, occupied: bool):
        state = "occupied" if occupied else "free"
        super().__init__(f"Spot {spot_id} is already {state}")
        self.spot_id = spot_id
        self.occupied = occupied


class SpotNotFoundError(ParkingDomainError):
    def __init__(self, spot_id: int):
        super().__init__(f"Spot {spot_id} not found")
        self.spot_id = spot_id


class DuplicateSpotError(ParkingDomainError):
    def __init__(self, spot_id: int):
        super().__init__(f"Spot {spot_id} is already registered")
        self.spot_id = spot_id


class VehicleAlreadyParkedError(ParkingDomainError):
    """Vehicle already holds an active ticket in the facility"""

    def __init__(self, license_plate: str, ticket_number: Optional[str] = None):
        suffix = f" (Ticket: {ticket_number})" if ticket_number else ""
        super().__init__(f"Vehicle {license_plate} is already parked{suffix}")
        self.license_plate = license_plate
        self.ticket_number = ticket_number
