"""
Practices Domain

Practice onboarding (register -> approve/deny), settings, opening hours,
preferences, calendar and analytics endpoints.
"""

from .router import router

__all__ = ["router"]
