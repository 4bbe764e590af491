# backend/mentora/repositories/__init__.py
"""
Repository layer interfaces for the Mentora booking engine.

Storage is owned by the embedding application; these protocols describe
what the booking services need from it.
"""

from .protocols import BookingRepository, SessionRepository, UserRepository

__all__ = [
    "BookingRepository",
    "SessionRepository",
    "UserRepository",
]
