#!/usr/bin/env python3
"""
End-to-end scenarios through ParkingService

Mirrors the demonstration facility: spots {1: two-wheeler, 2: four-wheeler,
3: four-wheeler, 4: two-wheeler}, a per-minute exit and a per-hour exit.
"""

import io
import unittest
from contextlib import redirect_stdout
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import patch

from gatepark.domain.models import Money, Vehicle, VehicleCategory
from gatepark.application.dtos import OutcomeReason, FacilityStatusDTO
from gatepark.application.parking_service import UnknownGateError
from gatepark.infrastructure.config import FacilitySettings
from gatepark.infrastructure.factories import FacilityBuilder
from gatepark.main import SimulatedClock, run_demo, main


START = datetime(2026, 9, 1, 8, 0, 0)


class TestParkingScenarios(unittest.TestCase):
    """Integration tests for the entry -> exit lifecycle"""

    def setUp(self):
        self.clock = SimulatedClock(START)
        self.service = FacilityBuilder.from_settings(FacilitySettings.default(), clock=self.clock).build()
        self.registry = self.service.facility.registry

    def test_two_wheeler_per_minute(self):
        entry = self.service.enter(Vehicle("KA-01-1234", VehicleCategory.TWO_WHEELER), "Entrance-1")
        self.assertTrue(entry.success)
        self.assertEqual(entry.spot_id, 1)
        self.assertTrue(self.registry.get_spot(1).is_occupied)

        self.clock.advance(8)
        result = self.service.exit(entry.ticket, "Exit-1")

        self.assertTrue(result.success)
        self.assertEqual(result.fee.to_money(), Money(Decimal("0.05")))
        self.assertFalse(self.registry.get_spot(1).is_occupied)

    def test_four_wheeler_per_hour(self):
        entry = self.service.enter(Vehicle("MH-02-5678", VehicleCategory.FOUR_WHEELER), "Entrance-2")
        self.assertEqual(entry.spot_id, 2)

        self.clock.advance(2)
        result = self.service.exit(entry.ticket, "Exit-2")

        self.assertTrue(result.success)
        self.assertEqual(result.fee.to_money(), Money(Decimal("3.00")))
        self.assertFalse(self.registry.get_spot(2).is_occupied)

    def test_full_category_rejects_without_mutation(self):
        self.service.enter(Vehicle("KA-01-0001", VehicleCategory.FOUR_WHEELER), "Entrance-1")
        self.service.enter(Vehicle("KA-01-0002", VehicleCategory.FOUR_WHEELER), "Entrance-2")
        before = [spot.to_dict() for spot in self.registry]

        result = self.service.enter(Vehicle("KA-01-0003", VehicleCategory.FOUR_WHEELER), "Entrance-1")

        self.assertFalse(result.success)
        self.assertEqual(result.reason, OutcomeReason.NO_SPOT_AVAILABLE)
        self.assertEqual([spot.to_dict() for spot in self.registry], before)

    def test_freed_spot_is_reassigned(self):
        first = self.service.enter(Vehicle("KA-01-0001", VehicleCategory.TWO_WHEELER), "Entrance-1")
        self.service.enter(Vehicle("KA-01-0002", VehicleCategory.TWO_WHEELER), "Entrance-2")
        self.clock.advance(120)
        self.service.exit(first.ticket, "Exit-1")

        third = self.service.enter(Vehicle("KA-01-0003", VehicleCategory.TWO_WHEELER), "Entrance-2")
        self.assertEqual(third.spot_id, 1)

    def test_exit_by_plate(self):
        self.service.enter(Vehicle("KA-01-1234", VehicleCategory.TWO_WHEELER), "Entrance-1")
        self.clock.advance(61)

        result = self.service.exit_by_plate("ka-01-1234", "Exit-1")
        self.assertTrue(result.success)
        self.assertEqual(result.fee.to_money(), Money(Decimal("0.10")))

        missing = self.service.exit_by_plate("ka-01-1234", "Exit-1")
        self.assertFalse(missing.success)
        self.assertEqual(missing.reason, OutcomeReason.INVALID_TICKET)

    def test_null_ticket_through_service(self):
        result = self.service.exit(None, "Exit-2")
        self.assertEqual(result.reason, OutcomeReason.INVALID_TICKET)
        self.assertEqual(self.registry.occupied_count(), 0)

    def test_unknown_gate(self):
        with self.assertRaises(UnknownGateError):
            self.service.enter(Vehicle("KA-01-1234", VehicleCategory.TWO_WHEELER), "Entrance-9")
        with self.assertRaises(KeyError):
            self.service.exit(None, "Exit-9")

    def test_status(self):
        entry = self.service.enter(Vehicle("KA-01-1234", VehicleCategory.TWO_WHEELER), "Entrance-1")
        self.clock.advance(timedelta(minutes=3).total_seconds())
        self.service.exit(entry.ticket, "Exit-1")
        self.service.enter(Vehicle("MH-02-5678", VehicleCategory.FOUR_WHEELER), "Entrance-2")

        status = self.service.status()

        self.assertIsInstance(status, FacilityStatusDTO)
        self.assertEqual(status.total_spots, 4)
        self.assertEqual(status.occupied_spots, 1)
        self.assertEqual(status.active_tickets, 1)
        self.assertEqual(status.closed_tickets, 1)
        self.assertEqual(status.total_revenue.to_money(), Money(Decimal("0.15")))
        self.assertEqual(status.exits, {"Exit-1": "per_minute", "Exit-2": "per_hour"})
        self.assertEqual([spot.spot_id for spot in status.spots if spot.is_occupied], [2])


class TestDemo(unittest.TestCase):
    """Integration tests for the demonstration driver"""

    def test_run_demo(self):
        output = io.StringIO()
        with redirect_stdout(output):
            service = run_demo(FacilitySettings.default())

        text = output.getvalue()
        self.assertIn("Vehicle 1 parked at spot 1", text)
        self.assertIn("Payment due: $0.05 USD", text)
        self.assertIn("Vehicle 2 parked at spot 2", text)
        self.assertIn("Payment due: $3.00 USD", text)
        self.assertEqual(service.facility.registry.occupied_count(), 0)
        self.assertEqual(service.facility.total_revenue, Money(Decimal("3.05")))

    def test_demo_needs_two_gates_each_way(self):
        settings = FacilitySettings.default().model_copy(update={"entrances": ["Entrance-1"]})
        with self.assertRaises(ValueError):
            run_demo(settings)

    def test_main(self):
        output = io.StringIO()
        with patch("gatepark.main.setup_logging") as mock_logging, redirect_stdout(output):
            exit_code = main([])

        self.assertEqual(exit_code, 0)
        mock_logging.assert_called_once_with("INFO", None)
        self.assertIn("Vehicle 2 has successfully exited.", output.getvalue())

    def test_main_with_missing_config(self):
        with patch("gatepark.main.setup_logging"), redirect_stdout(io.StringIO()):
            self.assertEqual(main(["--config", "/nonexistent/facility.yaml"]), 2)


if __name__ == '__main__':
    unittest.main()
