import math
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

# Import necessary modules for reference extraction
# Define the PsalmQuery data class and the Psalm reference pattern
# Provide the shared range-string parser used by the retriever

UNBOUNDED = math.inf

# "Psalm 23", "psalms 23:1-6", "Psalm 23 : 1 to 6", "psalm 119:1 through 8"
PSALM_REFERENCE_PATTERN = re.compile(
    r'\bpsalms?\s+(?P<chapter>\d+)'
    r'(?:\s*:\s*(?P<verses>\d+(?:\s*(?:-|to|through)\s*\d+)?))?',
    re.IGNORECASE,
)

_SEPARATOR_WORDS = re.compile(r'through|to', re.IGNORECASE)


@dataclass(frozen=True)
class PsalmQuery:
    chapter: int
    range: Optional[str] = None


def normalize_verse_spec(spec: str) -> str:
    """Turn '1 to 6' / '1 through 6' / ' 1 - 6 ' into '1-6'"""
    spec = _SEPARATOR_WORDS.sub('-', spec)
    return re.sub(r'\s+', '', spec)


def parse_all(text: Optional[str]) -> List[PsalmQuery]:
    """
    Extract every Psalm reference from free text, in order of appearance

    Returns an empty list when nothing in the text looks like a reference.
    """
    queries = []
    for match in PSALM_REFERENCE_PATTERN.finditer(text or ""):
        try:
            chapter = int(match.group('chapter'))
        except (TypeError, ValueError):
            logger.debug("Skipping malformed chapter in %r", match.group(0))
            continue

        verses = match.group('verses')
        if verses is not None:
            verses = normalize_verse_spec(verses)

        queries.append(PsalmQuery(chapter=chapter, range=verses))

    logger.debug("parse_all found %d queries in %r", len(queries), text)
    return queries


def parse_range(range_str: Optional[str]) -> Tuple[int, float]:
    """
    Resolve a verse range string to inclusive (start, end) bounds

    '4' -> (4, 4), '1-6' -> (1, 6), '' or None -> (1, UNBOUNDED).
    Reversed ranges are returned as given. Fragments that are not numbers
    are dropped, so 'a-6' resolves like '6'.
    """
    parts = []
    for fragment in (range_str or "").split('-'):
        try:
            parts.append(int(fragment.strip()))
        except ValueError:
            continue

    if len(parts) >= 2:
        return parts[0], parts[1]
    if len(parts) == 1:
        return parts[0], parts[0]
    return 1, UNBOUNDED


def format_reference(chapter: int, verse: int) -> str:
    return f"Psalm {chapter}:{verse}"
