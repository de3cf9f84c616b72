"""Notifier abstraction and implementations."""

from .base import Notifier
from .resend import ResendNotifier

__all__ = ["Notifier", "ResendNotifier"]
