"""
Scheduling core for the telehealth practice.

- Date/time normalization (timeutils.py)
- Slot grid generation (slots.py)
- Availability resolution from bookings and blocks (availability.py)
- Booking creation and update workflows (booking.py, updates.py)
- Block management (blocks.py)
- Dashboard counters (stats.py)
"""
