"""Integration tests: full entry -> exit flows through ParkingService"""
