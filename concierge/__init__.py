"""Cleaning concierge: admission, validation and dispatch of booking requests."""

__version__ = "1.0.0"
