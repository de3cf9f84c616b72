"""Service-region classification for free-text addresses.

Two independent signals, either of which places an address in the region:

  * a region keyword (``"san francisco"``, ``"sf"``...) appearing as a whole
    word or phrase, case-insensitively
  * a standalone five-digit postal code inside one of the configured ranges

Exclusion phrases (neighbouring cities that embed the region's name, such as
"South San Francisco") are blanked out before keyword matching. They do not
affect the postal-code signal.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from concierge.models.outcome import RegionClassification

_POSTAL_CODE = re.compile(r"(?<![A-Za-z0-9_])([0-9]{5})(?![A-Za-z0-9_])")


def _phrase_pattern(phrases: Iterable[str]) -> Optional[re.Pattern[str]]:
    """Alternation matching any phrase not flanked by a letter or digit."""
    escaped = sorted({re.escape(p.strip().lower()) for p in phrases if p.strip()}, key=len, reverse=True)
    if not escaped:
        return None
    return re.compile(r"(?<![a-z0-9])(?:" + "|".join(escaped) + r")(?![a-z0-9])")


class RegionMatcher:
    """Decide whether an address lies inside one fixed service region."""

    def __init__(
        self,
        keywords: Iterable[str],
        postal_ranges: Iterable[tuple[int, int]],
        exclusions: Iterable[str] = (),
    ) -> None:
        self._keywords = _phrase_pattern(keywords)
        self._exclusions = _phrase_pattern(exclusions)
        self._postal_ranges = [(int(lo), int(hi)) for lo, hi in postal_ranges]

    def _match_keyword(self, address: str) -> Optional[str]:
        if self._keywords is None:
            return None
        text = address.lower()
        if self._exclusions is not None:
            text = self._exclusions.sub(lambda m: " " * len(m.group()), text)
        match = self._keywords.search(text)
        return match.group() if match else None

    def _match_postal_code(self, address: str) -> Optional[str]:
        for match in _POSTAL_CODE.finditer(address):
            code = int(match.group(1))
            if any(lo <= code <= hi for lo, hi in self._postal_ranges):
                return match.group(1)
        return None

    def classify(self, address: Any) -> RegionClassification:
        """Classify ``address``; non-string input is never in the region."""
        if not isinstance(address, str):
            return RegionClassification(matched=False)

        keyword = self._match_keyword(address)
        if keyword is not None:
            return RegionClassification(matched=True, rule=keyword)

        code = self._match_postal_code(address)
        if code is not None:
            return RegionClassification(matched=True, rule=code)

        return RegionClassification(matched=False)

    def __call__(self, address: Any) -> bool:
        return self.classify(address).matched
