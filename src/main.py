"""
FactTrace Claim Verification Service
Searches the news for a claim, keeps sources that pass the reliability
dataset, extracts one article and asks a language model to score the claim.
"""

import json
import logging
import os
import time
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from data_loader import load_reliability_index
from facttrace import __version__
from facttrace.analyzer import ClaimAnalyzer
from facttrace.config import Settings, get_settings
from facttrace.engine import ClaimEngine
from facttrace.errors import ClaimValidationError, FactTraceError, PayloadTooLargeError
from facttrace.fetcher import ArticleFetcher
from facttrace.llm_adapter import LLMAdapter
from facttrace.models import MAX_QUERY_LENGTH, AnalyzeRequest, AnalyzeUrlRequest
from facttrace.reputation import ReliabilityFilter, ReliabilityIndex
from facttrace.selector import ArticleSelector
from facttrace.sources import NewsSearchClient

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('logs/facttrace.log') if os.path.exists('logs') else logging.NullHandler()
    ]
)

logger = logging.getLogger(__name__)

# Load environment variables early so Settings picks them up
load_dotenv()

TITLE = "FactTrace Claim Verification Service"
DESCRIPTION = "Scores short claims against reliability-filtered news coverage"

settings = get_settings()


def build_engine(settings: Settings, index: ReliabilityIndex) -> ClaimEngine:
    """Wire the pipeline components from settings."""
    fetcher = ArticleFetcher(
        timeout=settings.fetch_timeout,
        user_agent=settings.fetch_user_agent,
        mirror_base=settings.mirror_base,
    )
    return ClaimEngine(
        search_client=NewsSearchClient(settings=settings),
        source_filter=ReliabilityFilter(
            index,
            max_bias=settings.max_bias_threshold,
            min_reliability=settings.min_reliability_threshold,
        ),
        selector=ArticleSelector(
            fetcher,
            min_content_length=settings.min_content_length,
            min_article_length=settings.min_article_length,
            fallback_length=settings.fallback_snippet_length,
            snippet_length=settings.snippet_length,
        ),
        fetcher=fetcher,
        analyzer=ClaimAnalyzer(
            LLMAdapter(settings=settings),
            model_name=settings.llm_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            article_char_budget=settings.article_char_budget,
        ),
        preferred_domain=settings.preferred_domain,
        snippet_length=settings.snippet_length,
    )


# Metrics tracker
class Metrics:
    """Track service metrics"""

    def __init__(self):
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0
        self.total_processing_time = 0.0
        self.status_counts: Dict[int, int] = defaultdict(int)
        self.start_time = time.time()

    def record_request(self, status_code: int, processing_time: float):
        self.total_requests += 1
        self.status_counts[status_code] += 1
        if status_code < 400:
            self.successful_requests += 1
        else:
            self.failed_requests += 1
        self.total_processing_time += processing_time

    def get_stats(self) -> Dict[str, Any]:
        uptime = time.time() - self.start_time
        avg_time = (
            self.total_processing_time / self.total_requests
            if self.total_requests > 0 else 0
        )
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "avg_processing_time": round(avg_time, 3),
            "status_counts": dict(self.status_counts),
            "uptime_seconds": round(uptime, 1),
        }


metrics = Metrics()


class RateLimiter:
    """Sliding one-minute window per client; a limit of 0 disables it."""

    def __init__(self, max_requests_per_minute: int = 60):
        self.max_requests = max_requests_per_minute
        self.requests = defaultdict(list)  # IP -> list of timestamps
        self._last_sweep = time.time()

    def is_allowed(self, client_ip: str) -> tuple[bool, Optional[str]]:
        if self.max_requests <= 0:
            return True, None
        now = time.time()
        minute_ago = now - 60
        if now - self._last_sweep >= 60:
            self._sweep(minute_ago)
            self._last_sweep = now

        self.requests[client_ip] = [
            req_time for req_time in self.requests[client_ip]
            if req_time > minute_ago
        ]

        if len(self.requests[client_ip]) >= self.max_requests:
            wait_time = 60 - (now - self.requests[client_ip][0])
            return False, f"Rate limit exceeded. Try again in {int(wait_time)}s"

        self.requests[client_ip].append(now)
        return True, None

    def _sweep(self, cutoff: float) -> None:
        """Forget clients with no request inside the window."""
        idle = [ip for ip, stamps in self.requests.items() if not stamps or stamps[-1] <= cutoff]
        for ip in idle:
            del self.requests[ip]


rate_limiter = RateLimiter(max_requests_per_minute=settings.rate_limit_per_minute)


# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("=" * 60)
    logger.info(f"Starting {TITLE} v{__version__}")
    logger.info("=" * 60)

    settings.log_summary()
    if getattr(app.state, "index", None) is None:
        app.state.index = load_reliability_index(settings.reliability_dataset_path)
    if getattr(app.state, "engine", None) is None:
        app.state.engine = build_engine(settings, app.state.index)
    if app.state.index.size() == 0:
        logger.warning("Reliability index is empty; all sources will be admitted")

    logger.info("Service ready")
    yield
    logger.info("Shutdown complete")


# FastAPI application
app = FastAPI(
    title=TITLE,
    version=__version__,
    description=DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def track_metrics(request: Request, call_next):
    started = time.time()
    tracked = request.url.path.startswith("/api/")
    try:
        response = await call_next(request)
    except Exception:
        # the global handler renders this one outside the middleware stack
        if tracked:
            metrics.record_request(500, time.time() - started)
        raise
    if tracked:
        metrics.record_request(response.status_code, time.time() - started)
    return response


@app.exception_handler(FactTraceError)
async def facttrace_exception_handler(request: Request, exc: FactTraceError):
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body."},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    content = {"error": "Internal server error"}
    if settings.debug:
        content["detail"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


async def read_json_body(request: Request, limit: int) -> Any:
    """Read the request body incrementally, aborting once it exceeds ``limit`` bytes."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(f"Request body exceeds {limit} bytes.")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLargeError(f"Request body exceeds {limit} bytes.")

    if not body:
        raise ClaimValidationError("Request body must be JSON.")
    try:
        return json.loads(bytes(body))
    except ValueError as exc:
        raise ClaimValidationError("Request body must be valid JSON.") from exc


def _too_long(exc: ValidationError) -> bool:
    return any(error.get("type") == "string_too_long" for error in exc.errors())


def check_rate_limit(request: Request) -> None:
    client_ip = request.client.host if request.client else "unknown"
    allowed, error_msg = rate_limiter.is_allowed(client_ip)
    if not allowed:
        logger.warning(f"Rate limit exceeded for {client_ip}")
        raise StarletteHTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=error_msg)


# API endpoints
@app.get("/")
async def root():
    """Root endpoint with service information"""
    return {
        "service": TITLE,
        "version": __version__,
        "status": "operational",
        "endpoints": {
            "analyze": "POST /api/analyze",
            "analyze_url": "POST /api/analyze-url",
            "health": "GET /health",
            "metrics": "GET /metrics"
        }
    }


@app.get("/health")
async def health_check(request: Request):
    index = getattr(request.app.state, "index", None)
    sources = index.size() if index is not None else 0
    return {
        "ok": True,
        "time": datetime.now(timezone.utc).isoformat(),
        "reliability": {"enforced": sources > 0, "sources": sources},
    }


@app.get("/metrics")
async def get_metrics():
    """Get service metrics"""
    return {
        "service": TITLE,
        "version": __version__,
        "metrics": metrics.get_stats(),
    }


@app.post("/api/analyze")
async def analyze(request: Request):
    """Fact-check a short text claim against reliability-filtered news coverage."""
    check_rate_limit(request)
    payload = await read_json_body(request, settings.max_body_bytes)
    try:
        body = AnalyzeRequest.model_validate(payload)
    except ValidationError as exc:
        if _too_long(exc):
            raise ClaimValidationError(f"Query must be at most {MAX_QUERY_LENGTH} characters.") from exc
        raise ClaimValidationError("Request body must contain a string 'query'.") from exc

    logger.info(f"New claim: {body.query[:50]}...")
    engine: ClaimEngine = request.app.state.engine
    return await engine.analyze_claim(body.query, preferred_domain=body.preferredDomain)


@app.post("/api/analyze-url")
async def analyze_url(request: Request):
    """Fact-check a submitted link; the source must be rated and admissible."""
    check_rate_limit(request)
    payload = await read_json_body(request, settings.max_body_bytes)
    try:
        body = AnalyzeUrlRequest.model_validate(payload)
    except ValidationError as exc:
        if _too_long(exc):
            raise ClaimValidationError(f"Claim must be at most {MAX_QUERY_LENGTH} characters.") from exc
        raise ClaimValidationError("Request body must contain a valid 'url'.") from exc

    logger.info(f"New link: {body.url}")
    engine: ClaimEngine = request.app.state.engine
    return await engine.analyze_url(str(body.url), claim=body.claim)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8787")))
