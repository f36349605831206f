#!/usr/bin/env python3
"""
Aggregate Unit Tests

Tests for SpotRegistry and ParkingFacility.
"""

import itertools
import unittest
from datetime import datetime, timedelta
from decimal import Decimal

from gatepark.domain.models import (
    Money, ParkingSpot, Vehicle, VehicleCategory, TicketStatus,
    VehicleEnteredEvent, VehicleExitedEvent
)
from gatepark.domain.aggregates import SpotRegistry, ParkingFacility
from gatepark.domain.exceptions import (
    DuplicateSpotError, SpotNotFoundError, IllegalSpotTransitionError,
    VehicleAlreadyParkedError, TicketAlreadyClosedError, InvalidTicketError
)


TWO = VehicleCategory.TWO_WHEELER
FOUR = VehicleCategory.FOUR_WHEELER


def demo_registry() -> SpotRegistry:
    return SpotRegistry([
        ParkingSpot(1, TWO),
        ParkingSpot(2, FOUR),
        ParkingSpot(3, FOUR),
        ParkingSpot(4, TWO),
    ])


class TestSpotRegistry(unittest.TestCase):
    """Unit tests for SpotRegistry"""

    def setUp(self):
        self.registry = demo_registry()

    def test_first_matching_free_spot(self):
        self.assertEqual(self.registry.find_free_spot(TWO).spot_id, 1)
        self.assertEqual(self.registry.find_free_spot(FOUR).spot_id, 2)

    def test_search_skips_occupied_spots(self):
        self.registry.occupy(1)
        self.assertEqual(self.registry.find_free_spot(TWO).spot_id, 4)

        self.registry.occupy(4)
        self.assertIsNone(self.registry.find_free_spot(TWO))

    def test_search_with_no_spots_for_category(self):
        self.assertIsNone(self.registry.find_free_spot(VehicleCategory.THREE_WHEELER))

    def test_search_never_returns_occupied_spot(self):
        """Every occupancy pattern, every category"""
        spot_ids = [spot.spot_id for spot in self.registry]
        for pattern in itertools.product([False, True], repeat=len(spot_ids)):
            registry = demo_registry()
            for spot_id, occupied in zip(spot_ids, pattern):
                if occupied:
                    registry.occupy(spot_id)
            for category in VehicleCategory:
                spot = registry.find_free_spot(category)
                if spot is not None:
                    self.assertFalse(spot.is_occupied)
                    self.assertEqual(spot.category, category)

    def test_search_does_not_mutate(self):
        before = [spot.to_dict() for spot in self.registry]
        self.registry.find_free_spot(TWO)
        self.registry.find_free_spot(FOUR)
        self.assertEqual([spot.to_dict() for spot in self.registry], before)

    def test_search_uses_ascending_id_order(self):
        registry = SpotRegistry([ParkingSpot(7, TWO), ParkingSpot(3, TWO), ParkingSpot(5, TWO)])
        self.assertEqual(registry.find_free_spot(TWO).spot_id, 3)
        self.assertEqual([spot.spot_id for spot in registry], [3, 5, 7])

    def test_occupy_and_release(self):
        spot = self.registry.occupy(2)
        self.assertTrue(spot.is_occupied)
        self.registry.release(2)
        self.assertFalse(spot.is_occupied)

    def test_illegal_transitions(self):
        self.registry.occupy(2)
        with self.assertRaises(IllegalSpotTransitionError):
            self.registry.occupy(2)
        with self.assertRaises(IllegalSpotTransitionError):
            self.registry.release(3)

    def test_claim_free_spot(self):
        spot = self.registry.claim_free_spot(TWO)
        self.assertEqual(spot.spot_id, 1)
        self.assertTrue(spot.is_occupied)
        self.assertEqual(self.registry.claim_free_spot(TWO).spot_id, 4)
        self.assertIsNone(self.registry.claim_free_spot(TWO))
        self.assertEqual(self.registry.occupied_count(), 2)

    def test_duplicate_and_missing_spots(self):
        with self.assertRaises(DuplicateSpotError):
            self.registry.add_spot(ParkingSpot(1, FOUR))
        with self.assertRaises(SpotNotFoundError):
            self.registry.get_spot(99)
        self.assertIn(3, self.registry)
        self.assertNotIn(99, self.registry)

    def test_counts_and_report(self):
        self.registry.occupy(2)
        self.assertEqual(len(self.registry), 4)
        self.assertEqual(self.registry.occupied_count(), 1)
        self.assertEqual(self.registry.free_count(), 3)
        self.assertEqual(self.registry.free_count(FOUR), 1)

        report = self.registry.status_report()
        self.assertEqual(report["total_spots"], 4)
        self.assertEqual(report["by_category"]["four_wheeler"], {"total": 2, "occupied": 1, "free": 1})
        self.assertEqual(report["by_category"]["two_wheeler"], {"total": 2, "occupied": 0, "free": 2})


class TestParkingFacility(unittest.TestCase):
    """Unit tests for ParkingFacility aggregate"""

    def setUp(self):
        self.facility = ParkingFacility("Test Facility", demo_registry())
        self.vehicle = Vehicle("KA-01-1234", TWO)
        self.entry_time = datetime(2026, 5, 4, 8, 0, 0)
        self.spot = self.facility.registry.claim_free_spot(TWO)

    def test_issue_ticket(self):
        ticket = self.facility.issue_ticket(self.vehicle, self.spot, self.entry_time)

        self.assertIs(ticket.spot, self.spot)
        self.assertEqual(ticket.entry_time, self.entry_time)
        self.assertEqual(self.facility.active_tickets(), [ticket])
        self.assertIs(self.facility.find_active_ticket("ka-01-1234"), ticket)

        events = self.facility.clear_events()
        self.assertEqual(len(events), 1)
        self.assertIsInstance(events[0], VehicleEnteredEvent)
        self.assertEqual(events[0].spot_id, 1)
        self.assertFalse(self.facility.has_changes)

    def test_same_vehicle_cannot_hold_two_tickets(self):
        self.facility.issue_ticket(self.vehicle, self.spot, self.entry_time)
        other_spot = self.facility.registry.claim_free_spot(TWO)
        with self.assertRaises(VehicleAlreadyParkedError):
            self.facility.issue_ticket(self.vehicle, other_spot, self.entry_time)
        self.assertEqual(len(self.facility.active_tickets()), 1)

    def test_close_ticket(self):
        ticket = self.facility.issue_ticket(self.vehicle, self.spot, self.entry_time)
        version = self.facility.version
        fee = Money(Decimal("0.05"))

        self.facility.close_ticket(ticket, self.entry_time + timedelta(seconds=8), fee, "Exit-1")

        self.assertEqual(ticket.status, TicketStatus.CLOSED)
        self.assertEqual(self.facility.active_tickets(), [])
        self.assertEqual(self.facility.closed_tickets(), [ticket])
        self.assertEqual(self.facility.total_revenue, fee)
        self.assertGreater(self.facility.version, version)
        self.assertIsNone(self.facility.find_active_ticket("KA-01-1234"))
        self.assertIsInstance(self.facility.clear_events()[-1], VehicleExitedEvent)

    def test_close_ticket_twice(self):
        ticket = self.facility.issue_ticket(self.vehicle, self.spot, self.entry_time)
        exit_time = self.entry_time + timedelta(minutes=1)
        self.facility.close_ticket(ticket, exit_time, Money(Decimal("0.05")))

        with self.assertRaises(TicketAlreadyClosedError):
            self.facility.close_ticket(ticket, exit_time, Money(Decimal("0.05")))
        self.assertEqual(self.facility.total_revenue, Money(Decimal("0.05")))

    def test_close_missing_ticket(self):
        with self.assertRaises(InvalidTicketError):
            self.facility.close_ticket(None, self.entry_time, Money.zero())

    def test_close_ticket_issued_elsewhere(self):
        other = ParkingFacility("Other Facility", demo_registry())
        foreign = other.issue_ticket(self.vehicle, other.registry.claim_free_spot(TWO), self.entry_time)

        self.assertFalse(self.facility.was_issued(foreign))
        with self.assertRaises(InvalidTicketError):
            self.facility.close_ticket(foreign, self.entry_time, Money.zero())
        self.assertTrue(foreign.is_active)

    def test_was_issued(self):
        ticket = self.facility.issue_ticket(self.vehicle, self.spot, self.entry_time)
        self.assertTrue(self.facility.was_issued(ticket))
        self.facility.close_ticket(ticket, self.entry_time, Money.zero())
        self.assertTrue(self.facility.was_issued(ticket))
        self.assertFalse(self.facility.is_open(ticket))

    def test_status_report(self):
        self.facility.issue_ticket(self.vehicle, self.spot, self.entry_time)
        report = self.facility.status_report()
        self.assertEqual(report["name"], "Test Facility")
        self.assertEqual(report["occupied_spots"], 1)
        self.assertEqual(report["active_tickets"], 1)
        self.assertEqual(report["closed_tickets"], 0)


if __name__ == '__main__':
    unittest.main()
