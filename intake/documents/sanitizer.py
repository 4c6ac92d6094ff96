"""Filename → storage key fragment.

Processing flow:
1. Decompose Unicode (NFKD) so accented letters split into base + mark.
2. Drop combining marks, keeping the base letter ("é" → "e").
3. Replace anything outside ``[A-Za-z0-9._-]`` with "-".
4. Collapse runs of "-" and trim them from both ends.
5. Fall back to a fixed placeholder when nothing survives.
"""

import re
import unicodedata

FALLBACK_NAME = "file"

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]")
_DASH_RUN_RE = re.compile(r"-{2,}")


def sanitize_file_name(name: str | None) -> str:
    """Return a non-empty, storage-safe version of a user supplied filename."""
    if not name:
        return FALLBACK_NAME
    decomposed = unicodedata.normalize("NFKD", name)
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    replaced = _UNSAFE_RE.sub("-", without_marks)
    collapsed = _DASH_RUN_RE.sub("-", replaced).strip("-")
    return collapsed or FALLBACK_NAME
