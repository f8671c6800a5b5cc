"""Bookings app package.

This app encapsulates the reservation lifecycle: the booking model and
its state machine, availability checks, pricing and the time-gated
access to check-in instructions. Double bookings are prevented by
locking the listing row inside the creating transaction and re-running
the availability check under that lock.
"""
