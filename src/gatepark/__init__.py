"""
gatepark - a gate-based parking facility simulator

Spots are assigned at entrance gates and released at exit gates; each exit
gate bills with its own pricing strategy.
"""

__version__ = "1.0.0"
