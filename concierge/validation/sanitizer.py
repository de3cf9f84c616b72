"""Free-text sanitization.

``sanitize`` applies a fixed sequence of passes, each a single forward scan
over the text, so run time stays linear even for megabyte-sized inputs:

  1. drop ``<script>``/``<style>`` elements together with their content
  2. drop any remaining ``<...>`` tag
  3. delete the characters ``< > " '``
  4. delete the ``javascript:`` scheme
  5. delete inline event-handler prefixes such as ``onerror=``
  6. trim surrounding whitespace
  7. truncate to ``max_length``
"""

from __future__ import annotations

import re
from typing import Any

DEFAULT_MAX_LENGTH = 200

_UNSAFE_CHARS = str.maketrans("", "", "<>\"'")
_JS_SCHEME = re.compile(re.escape("javascript:"), re.IGNORECASE)
_WORD_RUN = re.compile(r"[A-Za-z0-9_]+")

# ASCII-only case folding keeps match offsets aligned with the input.
# <scripts>, <styled> and the like are ordinary tags, not elements.
_ELEMENTS = {
    tag: (
        re.compile("<" + tag + r"(?![A-Za-z0-9_])", re.IGNORECASE | re.ASCII),
        re.compile("</" + tag + ">", re.IGNORECASE | re.ASCII),
    )
    for tag in ("script", "style")
}


def _strip_element(text: str, tag: str) -> str:
    """Remove ``<tag ...>...</tag>`` spans, case-insensitively."""
    opener, closer = _ELEMENTS[tag]
    out: list[str] = []
    pos = 0
    while True:
        start = opener.search(text, pos)
        if start is None:
            break
        end = closer.search(text, start.end())
        if end is None:
            # No closer anywhere to the right, so no later opener can close either
            break
        out.append(text[pos:start.start()])
        pos = end.end()
    out.append(text[pos:])
    return "".join(out)


def _strip_tags(text: str) -> str:
    """Remove every ``<...>`` span."""
    out: list[str] = []
    pos = 0
    while True:
        start = text.find("<", pos)
        if start == -1:
            break
        end = text.find(">", start + 1)
        if end == -1:
            break
        out.append(text[pos:start])
        pos = end + 1
    out.append(text[pos:])
    return "".join(out)


def _strip_event_handlers(text: str) -> str:
    """Remove ``on<word>`` followed by optional whitespace and ``=``.

    The handler name is greedy over ASCII word characters, so a match always
    ends where the word run ends; only the first ``on`` inside a run can
    start one.
    """
    out: list[str] = []
    pos = 0
    for run in _WORD_RUN.finditer(text):
        word_start, word_end = run.span()
        i = word_end
        while i < len(text) and text[i].isspace():
            i += 1
        if i >= len(text) or text[i] != "=":
            continue
        on = run.group().lower().find("on")
        if on == -1 or word_start + on + 2 >= word_end:
            continue
        out.append(text[pos:word_start + on])
        pos = i + 1
    out.append(text[pos:])
    return "".join(out)


def sanitize(value: Any, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Return ``value`` stripped of markup and script vectors.

    Non-string input yields an empty string.
    """
    if not isinstance(value, str):
        return ""

    cleaned = _strip_element(value, "script")
    cleaned = _strip_element(cleaned, "style")
    cleaned = _strip_tags(cleaned)
    cleaned = cleaned.translate(_UNSAFE_CHARS)
    cleaned = _JS_SCHEME.sub("", cleaned)
    cleaned = _strip_event_handlers(cleaned)
    return cleaned.strip()[:max_length]
