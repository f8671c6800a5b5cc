"""Listings app package.

Holds what a host publishes: the listing itself, the nights the host has
blocked and the check-in instructions. The public API is read-only and
answers availability and calendar questions through the booking services.
"""
