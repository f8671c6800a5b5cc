"""Favorites app package.

Guests save listings into named collections. Saving and removing are
idempotent ``PUT``/``DELETE`` calls on the listing id.
"""
