"""Application layer: gates, the parking service and result DTOs"""
