# Import FastAPI router and dependencies
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from typing import List, Optional
import logging

from app.agents.task_router import LookupResult, PsalmLookupRouter
from utils.errors import LookupInProgress, PsalmLookupError

logger = logging.getLogger(__name__)

# Initialize the router
router = APIRouter(prefix="/api/psalms", tags=["Psalms"])


# Pydantic models for request/response
class PsalmLookupRequest(BaseModel):
    prompt: str = Field(..., description="Psalm reference (e.g. 'Psalm 23:1-6') or a free-form request", min_length=1)


class VerseResult(BaseModel):
    reference: str
    chapter: int
    verse: int
    text: str


class LookupResponse(BaseModel):
    prompt: str
    normalized_prompt: Optional[str] = None
    found: bool
    error: Optional[str] = None
    results: List[VerseResult]
    lines: List[str]


class StatusResponse(BaseModel):
    busy: bool
    normalizer: str


def get_lookup_router(request: Request) -> PsalmLookupRouter:
    """Dependency returning the lookup router built at startup"""
    return request.app.state.lookup_router


def to_response(result: LookupResult) -> LookupResponse:
    return LookupResponse(
        prompt=result.prompt,
        normalized_prompt=result.normalized_prompt,
        found=result.found,
        error=result.error,
        results=[
            VerseResult(reference=v.reference, chapter=v.chapter, verse=v.verse, text=v.text)
            for v in result.verses
        ],
        lines=result.lines,
    )


async def run_lookup(lookup_router: PsalmLookupRouter, prompt: str) -> LookupResponse:
    try:
        result = await lookup_router.run(prompt)
    except LookupInProgress as e:
        raise HTTPException(status_code=409, detail=e.message)
    return to_response(result)


@router.post("/lookup", response_model=LookupResponse)
async def lookup_psalms(
    body: PsalmLookupRequest,
    lookup_router: PsalmLookupRouter = Depends(get_lookup_router)
):
    """
    Look up Psalm verses for a reference or a natural-language request

    - **prompt**: e.g. "Psalm 23:1-6", "psalm 1 and psalm 2:1", "the first verse of every psalm"

    Lookup errors ("No verses found", "Could not understand the reference.") are
    reported in the body with found=false.
    """
    return await run_lookup(lookup_router, body.prompt)


@router.get("/lookup", response_model=LookupResponse)
async def lookup_psalms_get(
    prompt: str = Query(..., min_length=1, description="Psalm reference or request"),
    lookup_router: PsalmLookupRouter = Depends(get_lookup_router)
):
    """Look up Psalm verses via GET request"""
    return await run_lookup(lookup_router, prompt)


@router.get("/chapters", response_model=List[int])
async def get_chapters(lookup_router: PsalmLookupRouter = Depends(get_lookup_router)):
    """List the Psalm numbers available in the corpus"""
    try:
        return lookup_router.get_retriever().chapter_numbers()
    except PsalmLookupError as e:
        raise HTTPException(status_code=503, detail=e.message)


@router.get("/status", response_model=StatusResponse)
async def get_status(lookup_router: PsalmLookupRouter = Depends(get_lookup_router)):
    """Report whether a lookup is in flight and which normalizer is active"""
    normalizer = getattr(lookup_router.normalizer, "name", "identity")
    return StatusResponse(busy=lookup_router.busy, normalizer=normalizer)


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "Psalms Lookup API"}
