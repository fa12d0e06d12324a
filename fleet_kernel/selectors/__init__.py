"""Selectors for the fleet kernel (read side)."""

from fleet_kernel.selectors.trip_selector import TripSelector

__all__ = [
    "TripSelector",
]
