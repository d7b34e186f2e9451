from dataclasses import dataclass
from typing import List, Optional
import logging

from db.corpus import PsalmsBook, Verse
from utils.reference_parser import PsalmQuery, format_reference, parse_range

# Module logger
logger = logging.getLogger(__name__)

# Import necessary modules and libraries for Psalm retrieval
# Define the DisplayVerse result row and the PsalmRetrieverAgent
# The retriever only reads the corpus it was constructed with


@dataclass(frozen=True)
class DisplayVerse:
    chapter: int
    verse: int
    text: str

    @property
    def reference(self) -> str:
        return format_reference(self.chapter, self.verse)

    @property
    def line(self) -> str:
        return f"{self.reference} {self.text}"


class PsalmRetrieverAgent:
    def __init__(self, corpus: PsalmsBook):
        self.corpus = corpus

    def load_verses(self, chapter_number: int, verse_range: Optional[str] = None) -> List[Verse]:
        """
        Look up verses of one chapter, optionally limited to a verse range

        Args:
            chapter_number: Psalm number (e.g. 23)
            verse_range: Range string such as "1-6" or "4"; None means the whole chapter

        Returns:
            Verses sorted by number, never including the title verse (0).
            An unknown chapter gives an empty list.
        """
        chapter = self.corpus.book.find_chapter(chapter_number)
        if chapter is None:
            logger.debug("Chapter %s not in corpus", chapter_number)
            return []

        start, end = parse_range(verse_range)

        verses = [
            v for v in chapter.verses
            if v.verse != 0 and start <= v.verse <= end
        ]
        return sorted(verses, key=lambda v: v.verse)

    def resolve(self, query: PsalmQuery) -> List[DisplayVerse]:
        """Resolve one parsed query into display rows"""
        verses = self.load_verses(query.chapter, query.range)
        logger.debug("Psalm %s (%s) -> %d verses", query.chapter, query.range or "all", len(verses))
        return [DisplayVerse(chapter=query.chapter, verse=v.verse, text=v.text) for v in verses]

    def chapter_numbers(self) -> List[int]:
        return sorted(self.corpus.book.chapter_numbers())
