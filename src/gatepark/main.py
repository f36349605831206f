# File: src/gatepark/main.py
"""
Main entry point for the Gate Parking Simulator
Builds the configured facility and walks two vehicles through it
"""

from typing import List, Optional
from datetime import datetime, timedelta
import argparse
import logging
import sys
import time

from .domain.models import Vehicle, VehicleCategory
from .application.parking_service import ParkingService
from .infrastructure.config import FacilitySettings, load_settings
from .infrastructure.factories import FacilityBuilder


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Setup application logging configuration"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )
    return logging.getLogger(__name__)


class SimulatedClock:
    """Clock that only moves when told to"""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime.now()

    def __call__(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


def park_and_leave(
    service: ParkingService,
    label: str,
    vehicle: Vehicle,
    entrance_id: str,
    exit_id: str,
    wait_seconds: float,
    clock: Optional[SimulatedClock] = None
) -> bool:
    """Run one vehicle through an entrance and an exit, printing each step"""
    entry = service.enter(vehicle, entrance_id)
    if not entry.success:
        print(f"No parking spot available for {label} of type {vehicle.category}")
        return False

    print(f"{label} parked at spot {entry.spot_id} (Ticket: {entry.ticket_number})")

    if clock is not None:
        clock.advance(wait_seconds)
    else:
        time.sleep(wait_seconds)

    result = service.exit(entry.ticket, exit_id)
    if result.success:
        print(f"Payment due: {result.fee.to_money().format()}")
        print(f"Vehicle with license {result.license_plate} exited. Spot {result.spot_id} is now free.")
        print(f"{label} has successfully exited.")
    else:
        print(f"{label} exit failed: {result.message}")
    return result.success


def run_demo(settings: FacilitySettings, realtime: bool = False) -> ParkingService:
    clock = None if realtime else SimulatedClock()
    service = FacilityBuilder.from_settings(settings, clock=clock).build()

    entrances = service.entrance_ids
    exits = service.exit_ids
    if len(entrances) < 2 or len(exits) < 2:
        raise ValueError("Demo needs at least two entrances and two exits")

    park_and_leave(
        service, "Vehicle 1", Vehicle("KA-01-1234", VehicleCategory.TWO_WHEELER),
        entrances[0], exits[0], wait_seconds=8, clock=clock
    )
    print("-----")
    park_and_leave(
        service, "Vehicle 2", Vehicle("MH-02-5678", VehicleCategory.FOUR_WHEELER),
        entrances[1], exits[1], wait_seconds=2, clock=clock
    )
    return service


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gatepark-demo",
        description="Walk two vehicles through a simulated gated parking facility"
    )
    parser.add_argument("--config", help="YAML facility configuration (default: built-in demo)")
    parser.add_argument("--log-level", default=None, help="Override configured log level")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--realtime", action="store_true",
                        help="Sleep for the simulated waits instead of advancing a fake clock")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 2

    logger = setup_logging(args.log_level or settings.log_level, args.log_file)
    logger.info("Starting gate parking demo...")

    try:
        service = run_demo(settings, realtime=args.realtime)
    except ValueError as e:
        logger.error(f"Demo failed: {e}")
        return 1

    logger.info(f"Demo finished: {service.facility}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
