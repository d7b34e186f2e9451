from dataclasses import dataclass, field
from typing import List, Optional
import asyncio
import logging

from app.agents.normalizer_agent import PromptNormalizer
from app.agents.retriever_agent import DisplayVerse, PsalmRetrieverAgent
from db.corpus import get_corpus
from utils.errors import (
    CorpusUnavailable,
    LookupInProgress,
    NoReferenceRecognized,
    NormalizerEmpty,
    NormalizerFailed,
    NoVersesFound,
    PsalmLookupError,
)
from utils.reference_parser import PsalmQuery, parse_all

logger = logging.getLogger(__name__)

# Import necessary modules and libraries for lookup routing
# Define the LookupResult returned to the UI layers
# Define PsalmLookupRouter: normalize -> extract -> resolve, one lookup at a time


@dataclass
class LookupResult:
    prompt: str
    normalized_prompt: Optional[str] = None
    queries: List[PsalmQuery] = field(default_factory=list)
    verses: List[DisplayVerse] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.error is None and bool(self.verses)

    @property
    def lines(self) -> List[str]:
        return [v.line for v in self.verses]


class PsalmLookupRouter:
    """
    Runs the whole lookup for one user prompt and reports a single outcome

    Only one lookup may be in flight; `trigger` is a no-op while busy.
    """

    def __init__(self, retriever: Optional[PsalmRetrieverAgent], normalizer: Optional[PromptNormalizer] = None):
        self.retriever = retriever
        self.normalizer = normalizer
        self._busy = False
        # The loop only keeps a weak reference to scheduled tasks
        self._task: Optional["asyncio.Task[LookupResult]"] = None

    @property
    def busy(self) -> bool:
        return self._busy

    def trigger(self, prompt: str) -> Optional["asyncio.Task[LookupResult]"]:
        """Schedule a lookup on the running loop, or do nothing if one is outstanding"""
        if self._busy:
            logger.debug("Lookup already in progress; ignoring trigger for %r", prompt)
            return None
        loop = asyncio.get_running_loop()
        # Claim the slot before the task starts so a second trigger sees it
        self._busy = True
        self._task = loop.create_task(self._run_claimed(prompt))
        self._task.add_done_callback(self._forget_task)
        return self._task

    def _forget_task(self, task: "asyncio.Task[LookupResult]") -> None:
        if self._task is task:
            self._task = None

    async def run(self, prompt: str) -> LookupResult:
        if self._busy:
            raise LookupInProgress()
        self._busy = True
        return await self._run_claimed(prompt)

    async def _run_claimed(self, prompt: str) -> LookupResult:
        result = LookupResult(prompt=prompt)
        try:
            normalized = await self._normalize(prompt)
            result.normalized_prompt = normalized

            result.queries = parse_all(normalized)
            if not result.queries:
                raise NoReferenceRecognized()

            result.verses = self._resolve_all(result.queries)
            if not result.verses:
                raise NoVersesFound()
        except PsalmLookupError as e:
            logger.info("Lookup for %r ended with: %s", prompt, e.message)
            result.error = e.message
        finally:
            self._busy = False

        return result

    async def _normalize(self, prompt: str) -> str:
        text = (prompt or "").strip()
        if not text or self.normalizer is None:
            return text
        try:
            normalized = await self.normalizer.normalize(text)
        except PsalmLookupError:
            raise
        except Exception as e:
            logger.exception("Normalizer raised for %r", text)
            raise NormalizerFailed(f"AI normalization failed: {e}") from e

        normalized = (normalized or "").strip()
        if not normalized:
            raise NormalizerEmpty()
        return normalized

    def get_retriever(self) -> PsalmRetrieverAgent:
        # Built lazily from the shared corpus when none was supplied
        if self.retriever is None:
            self.retriever = PsalmRetrieverAgent(get_corpus())
        return self.retriever

    def _resolve_all(self, queries: List[PsalmQuery]) -> List[DisplayVerse]:
        retriever = self.get_retriever()

        verses: List[DisplayVerse] = []
        for query in queries:
            try:
                verses.extend(retriever.resolve(query))
            except CorpusUnavailable:
                raise
            except Exception:
                logger.exception("Failed to resolve %s; skipping it", query)
        return verses
