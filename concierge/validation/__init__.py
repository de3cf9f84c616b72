"""Input sanitization and field validation."""

from .fields import validate_email, validate_name, validate_phone
from .region import RegionMatcher
from .sanitizer import sanitize

__all__ = [
    "RegionMatcher",
    "sanitize",
    "validate_email",
    "validate_name",
    "validate_phone",
]
