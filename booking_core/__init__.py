"""Capacity-checked single-seat event reservations."""

__version__ = "1.0.0"
