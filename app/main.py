# Import necessary modules and libraries for the application
import os
from fastapi import FastAPI, Form, Request
from fastapi.templating import Jinja2Templates
from fastapi.responses import HTMLResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import uvicorn
from dotenv import load_dotenv
import logging

from app.agents.normalizer_agent import build_normalizer
from app.agents.retriever_agent import PsalmRetrieverAgent
from app.agents.task_router import PsalmLookupRouter
from app.psalm_router import router as psalm_router
from db.corpus import get_corpus
from utils.errors import CorpusUnavailable, LookupInProgress

# Load environment variables
load_dotenv()

# Configure root logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper(),
                    format='%(asctime)s %(levelname)s [%(name)s] %(message)s')
logging.getLogger('httpx').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "static")


def build_lookup_router() -> PsalmLookupRouter:
    """Load the corpus once and wire the lookup pipeline around it"""
    try:
        retriever = PsalmRetrieverAgent(get_corpus())
    except CorpusUnavailable as e:
        # Lookups will retry the load and report the error to the user
        logger.error("Corpus unavailable at startup: %s", e.message)
        retriever = None

    return PsalmLookupRouter(retriever, build_normalizer())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting Psalms Lookup...")
    if getattr(app.state, "lookup_router", None) is None:
        app.state.lookup_router = build_lookup_router()
    logger.info("Psalms Lookup is ready")

    yield

    logger.info("Shutting down Psalms Lookup...")


# Create FastAPI app
app = FastAPI(
    title="Psalms Lookup",
    description="Resolve Psalm references and natural-language requests into verse text",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(psalm_router)

# Setup templates for the form page
templates = Jinja2Templates(directory=TEMPLATE_DIR)


@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    """Serve the lookup form"""
    return templates.TemplateResponse(request, "index.html", {"prompt": "", "lines": [], "error": None})


@app.post("/", response_class=HTMLResponse)
async def submit_lookup(request: Request, prompt: str = Form("")):
    """Run a lookup from the form and render the verses or the error"""
    lookup_router: PsalmLookupRouter = request.app.state.lookup_router
    try:
        result = await lookup_router.run(prompt)
        lines, error = result.lines, result.error
    except LookupInProgress as e:
        lines, error = [], e.message

    return templates.TemplateResponse(request, "index.html", {"prompt": prompt, "lines": lines, "error": error})


@app.get("/health")
async def root_health():
    """Root health check"""
    return {
        "status": "healthy",
        "message": "Psalms Lookup API",
        "version": "1.0.0",
        "docs": "/docs"
    }


if __name__ == "__main__":
    # Development server
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
