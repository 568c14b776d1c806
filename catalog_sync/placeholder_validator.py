from collections import Counter
from typing import List
import re

# Alternation order matters: a double-brace token must be consumed whole so
# that "{{1}}" is not also reported as "{1}".
PLACEHOLDER_REGEX = re.compile(
    r'\{\{\s*[^{}]+?\s*\}\}'  # i18next interpolation: {{name}}, {{ count }}
    r'|\{\d+\}'                # positional: {0}, {1}
    r'|%(?:\d+\$)?[sd]'        # printf: %s, %d, %1$s
)


def extract_placeholders(text: str) -> List[str]:
    """
    Extracts interpolation tokens from a catalog string.

    Args:
        text: The string to scan.

    Returns:
        The placeholders in order of appearance, duplicates included.
    """
    return PLACEHOLDER_REGEX.findall(text)


def placeholders_match(source: str, candidate: str) -> bool:
    """
    Checks that a translation carries exactly the placeholders of its source.

    Reordering is allowed, since word order differs between languages, but
    every token must appear the same number of times.

    Args:
        source: The source-language string.
        candidate: The translated string.

    Returns:
        True if both strings hold the same multiset of placeholders.
    """
    return Counter(extract_placeholders(source)) == Counter(extract_placeholders(candidate))
