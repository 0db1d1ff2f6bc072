"""Post-processing filters for extracted field values."""

import re
from functools import lru_cache

from catalog_browser.sites.registry import FieldRule


@lru_cache(maxsize=128)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def apply_filter(raw_value: str | None, rule: FieldRule) -> str | None:
    """Apply the rule's regex capture to a raw value.

    Returns capture group 1 on a match. A value that does not match is
    returned unchanged, so a filter never blanks out a field.
    """
    if raw_value is None or not rule.regex:
        return raw_value
    match = _compile(rule.regex).search(raw_value)
    if match is None or match.group(1) is None:
        return raw_value
    return match.group(1)
