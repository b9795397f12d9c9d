"""
Appointments Domain

Availability slots and everything that happens to them:
- availability.py: opening-hours gate for new slots and hours changes
- booking.py: the Available -> Booked transition
- search.py: filter / sort / paginate the bookable corpus
- service.py: slot CRUD and practice calendar layout
"""

from .router import router, users_router

__all__ = ["router", "users_router"]
