from typing import Optional, Protocol
import os
import re
from dotenv import load_dotenv
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.groq import GroqModel
from pydantic_ai.providers.groq import GroqProvider
import logging

from utils.errors import NormalizerEmpty, NormalizerFailed

logger = logging.getLogger(__name__)

# Import necessary modules and libraries for prompt normalization
# Define the normalizer interface, the identity normalizer and the AI normalizer
# Clean AI output into a comma-separated list of Psalm references

load_dotenv()

DEFAULT_NORMALIZER_MODEL = "llama-3.1-8b-instant"

NORMALIZER_INSTRUCTIONS = """You format user prompts for chapters and verses ranges in Psalms and/or Proverbs into valid biblical references.
For example: if the user enters "The first verse of every psalm in Psalms," or, "The first verse of every chapter in Proverbs," you would convert that to:

Psalm 1:1, Psalm 2:1, Psalm 3:1...Psalm 150:1 (the ellipses are a substitute for Psalm 4 through 149)

Convert the user's request into a comma-separated list of Psalm references.
Each reference must use one of these formats:

Valid formats include:

- **Entire book:** `Proverbs` or `Book of Proverbs`
- **Chapter range:** `Proverbs 1-3`
- **Single chapter:** `Proverbs 16`
- **Verse range:** `Proverbs 16:1-9`
- **Multiple ranges:** `Proverbs 3:5-6, 16:9, 19:21`

Rules:
- Expand ordinal language (e.g. "first verse" -> verse 1)
- Expand ranges (e.g. "first three psalms" -> Psalm 1, Psalm 2, Psalm 3)
- If a verse is specified, ALWAYS include it
- If no verse is specified, return the whole chapter
- Return ONLY the normalized string, no commentary

Important:
Make every attempt to interpret the user prompt, whether it conforms to expectations or otherwise."""


def build_prompt(user_text: str) -> str:
    return f"{NORMALIZER_INSTRUCTIONS}\n\nUser request:\n{user_text}"


def clean_normalizer_output(raw: str) -> str:
    """
    Lowercase the model output and flatten it into 'psalm 1:1, psalm 2:1'

    Periods are dropped, commas and newlines become ', ' separators and
    edge whitespace is trimmed.
    """
    cleaned = (raw or "").lower().replace(".", "")
    cleaned = cleaned.replace("\r", "").replace("\n", ",")
    cleaned = re.sub(r"\s*,[\s,]*", ", ", cleaned)
    cleaned = re.sub(r"[ \t]+", " ", cleaned)
    return cleaned.strip().strip(",").strip()


class PromptNormalizer(Protocol):
    async def normalize(self, text: str) -> str:
        ...


class IdentityNormalizer:
    """Pass user text through unchanged"""

    name = "identity"

    async def normalize(self, text: str) -> str:
        return text


class NormalizerAgent:
    """
    Rewrites free-form requests into canonical Psalm references with an LLM

    The model can be injected; otherwise a Groq model is built from GROQ_API_KEY.
    """

    name = "ai"

    def __init__(self, model: Optional[Model] = None, api_key: Optional[str] = None,
                 model_name: Optional[str] = None):
        if model is None:
            api_key = api_key or os.getenv("GROQ_API_KEY")
            if not api_key:
                raise ValueError("GROQ_API_KEY environment variable is not set")
            model = GroqModel(
                model_name or os.getenv("PSALMS_NORMALIZER_MODEL", DEFAULT_NORMALIZER_MODEL),
                provider=GroqProvider(api_key=api_key)
            )

        self.agent = Agent(model)

    async def normalize(self, text: str) -> str:
        try:
            result = await self.agent.run(build_prompt(text))
        except Exception as e:
            logger.error("Normalizer call failed: %s", str(e))
            raise NormalizerFailed(f"AI normalization failed: {e}") from e

        cleaned = clean_normalizer_output(str(result.output))
        if not cleaned:
            raise NormalizerEmpty()

        logger.info("AI normalized prompt: %s", cleaned)
        return cleaned


def normalizer_disabled() -> bool:
    return os.getenv("PSALMS_DISABLE_NORMALIZER", "").strip().lower() in ("1", "true", "yes", "on")


def build_normalizer() -> PromptNormalizer:
    """Use the AI normalizer when configured, otherwise pass input straight through"""
    if normalizer_disabled():
        logger.info("AI normalizer disabled by PSALMS_DISABLE_NORMALIZER")
        return IdentityNormalizer()

    if not os.getenv("GROQ_API_KEY"):
        logger.warning("GROQ_API_KEY environment variable is not set - AI normalization will be disabled")
        return IdentityNormalizer()

    return NormalizerAgent()
