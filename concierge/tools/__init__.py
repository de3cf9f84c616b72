"""Caller-facing tools."""

from .request_cleaning import RequestCleaningTool

__all__ = ["RequestCleaningTool"]
