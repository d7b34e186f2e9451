# Import necessary modules and libraries for the Psalms corpus
# Define read-only pydantic models mirroring the bundled JSON resource
# Provide an explicit loader and a lazily-initialised, lock-guarded accessor
import os
import threading
from pathlib import Path
from typing import List, Optional, Tuple
import logging

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from utils.errors import CorpusUnavailable

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_CORPUS_PATH = Path(__file__).parent / "psalms_kjv.json"


class Verse(BaseModel):
    model_config = ConfigDict(frozen=True)

    verse: int = Field(..., ge=0, description="Verse number; 0 marks a title line")
    text: str


class Chapter(BaseModel):
    model_config = ConfigDict(frozen=True)

    chapter: int = Field(..., gt=0)
    verses: Tuple[Verse, ...]


class Book(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    chapters: Tuple[Chapter, ...]

    def find_chapter(self, number: int) -> Optional[Chapter]:
        """Return the first chapter numbered `number`, if any"""
        return next((c for c in self.chapters if c.chapter == number), None)

    def chapter_numbers(self) -> List[int]:
        return [c.chapter for c in self.chapters]


class PsalmsBook(BaseModel):
    model_config = ConfigDict(frozen=True)

    book: Book


def corpus_path() -> Path:
    return Path(os.getenv("PSALMS_CORPUS_PATH") or DEFAULT_CORPUS_PATH)


def load_corpus(path: Optional[Path] = None) -> PsalmsBook:
    """
    Read and validate the Psalms JSON resource

    Raises:
        CorpusUnavailable: the file is missing, unreadable or not shaped like
            {"book": {"title": ..., "chapters": [...]}}
    """
    path = Path(path) if path is not None else corpus_path()
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise CorpusUnavailable(f"Psalms text not found at {path}") from e

    try:
        corpus = PsalmsBook.model_validate_json(raw)
    except ValidationError as e:
        raise CorpusUnavailable(f"Psalms text at {path} could not be parsed: {e.error_count()} error(s)") from e

    logger.info("Loaded corpus '%s' with %d chapters from %s",
                corpus.book.title, len(corpus.book.chapters), path)
    return corpus


_corpus: Optional[PsalmsBook] = None
_corpus_lock = threading.Lock()


def get_corpus() -> PsalmsBook:
    """Get the process-wide corpus, loading it on first use"""
    global _corpus
    if _corpus is None:
        with _corpus_lock:
            if _corpus is None:
                _corpus = load_corpus()
    return _corpus


def reset_corpus():
    """Forget the cached corpus so the next get_corpus() reloads it"""
    global _corpus
    with _corpus_lock:
        _corpus = None
