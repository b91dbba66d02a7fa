# app.py
"""
ESG Report Scorer API - FastAPI application scoring climate disclosures.

Uploads a report (PDF) or raw text and scores it against twelve rule-based
climate-disclosure criteria (C1..C12). Scoring is deterministic: the same text
always gets the same scores.

Run with: uvicorn app:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import base64
import os
import secrets
import tempfile
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from esgint.errors import AnalysisTimeout, CriterionEvaluationError
from esgint.extract.pdf_text import extract_pdf_text
from esgint.extract.quality import text_quality_ok
from esgint.logs import configure_logging
from esgint.rubrics.analyzer import AnalysisReport, build_analyzer

# Load environment variables
load_dotenv()

logger = structlog.get_logger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

LOG_LEVEL = os.getenv("ESG_LOG_LEVEL", "INFO")
RULES_PATH = os.getenv("ESG_RULES_PATH", "").strip() or None
SCORE_LABEL = os.getenv("ESG_SCORE_LABEL", "").strip() or None
RULES_STRICT = os.getenv("ESG_RULES_STRICT", "").strip().lower() in ("1", "true", "yes")
MAX_WORKERS = int(os.getenv("ESG_MAX_WORKERS") or "1")
ANALYSIS_TIMEOUT_S = float(os.getenv("ESG_ANALYSIS_TIMEOUT_S") or "0") or None
MAX_TEXT_CHARS = int(os.getenv("ESG_MAX_TEXT_CHARS") or "20000000")

configure_logging(LOG_LEVEL)

# Built once; a bad rule file or pattern stops startup here.
ANALYZER = build_analyzer(
    RULES_PATH,
    score_label=SCORE_LABEL,
    strict=RULES_STRICT,
    max_workers=MAX_WORKERS,
    timeout_s=ANALYSIS_TIMEOUT_S,
)

# =============================================================================
# BASIC AUTH CONFIGURATION
# =============================================================================

AUTH_USERS_STR = os.getenv("ESG_AUTH_USERS", "")
AUTH_PASSWORD = os.getenv("ESG_AUTH_PASSWORD", "")

# Parse comma-separated usernames
AUTHORIZED_USERS: Dict[str, str] = {}
if AUTH_USERS_STR and AUTH_PASSWORD:
    for username in AUTH_USERS_STR.split(","):
        username = username.strip()
        if username:
            AUTHORIZED_USERS[username] = AUTH_PASSWORD

AUTH_ENABLED = bool(AUTHORIZED_USERS)

_CHALLENGE = {"WWW-Authenticate": 'Basic realm="ESG Report Scorer API"'}


def check_basic_auth(auth_header: Optional[str]) -> Optional[str]:
    """
    Return the username for a valid `Authorization: Basic ...` header, else None.
    """
    if not auth_header or not auth_header.startswith("Basic "):
        return None
    try:
        decoded = base64.b64decode(auth_header.split(" ", 1)[1]).decode("utf-8")
        username, password = decoded.split(":", 1)
    except (ValueError, UnicodeDecodeError):
        return None

    stored_password = AUTHORIZED_USERS.get(username)
    if stored_password is None or not secrets.compare_digest(password, stored_password):
        return None
    return username


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class TextAnalysisRequest(BaseModel):
    """Raw report text, already extracted by the caller."""
    text: str = Field(..., description="Full report text")
    filename: Optional[str] = Field(None, description="Optional label echoed back in document_info")


class AnalysisResponse(BaseModel):
    """Complete scoring response. Scores are always complete for all criteria."""
    scores: Dict[str, float]
    total_score: float
    total_score_criteria: List[str]
    document_info: Dict[str, Any]
    processing_info: Dict[str, Any]
    traces: Optional[Dict[str, Any]] = None


# =============================================================================
# FASTAPI APP
# =============================================================================

app = FastAPI(
    title="ESG Report Scorer API",
    description="""
    Rule-based scoring of climate disclosures in company reports.

    * **POST /analyze/pdf**: upload a PDF report
    * **POST /analyze/text**: send already extracted text
    * **GET /criteria**: criteria, tiers, gates and the total-score subset

    Every criterion yields exactly one score from its allowed values; the total
    score sums the declared subset C1..C10.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def run_analysis(text: str, *, filename: str, source: str, pages: Optional[int], trace: bool) -> AnalysisResponse:
    """
    Score one document and shape the API response.

    Timeouts map to 504 and predicate failures to 500 naming the criterion;
    neither ever produces a partially filled response.
    """
    if len(text) > MAX_TEXT_CHARS:
        raise HTTPException(status_code=413, detail=f"Document text exceeds {MAX_TEXT_CHARS} characters")

    log = logger.bind(request_id=uuid.uuid4().hex[:12], filename=filename)
    quality = text_quality_ok(text)
    if not quality.ok:
        log.warning("low_text_quality", reason=quality.reason, **quality.metrics)

    try:
        report: AnalysisReport = ANALYZER.analyze(text, log=log)
    except AnalysisTimeout as e:
        raise HTTPException(status_code=504, detail=str(e))
    except CriterionEvaluationError as e:
        log.error("criterion_evaluation_failed", criterion=e.criterion_id, tier=e.tier_index, error=repr(e.cause))
        raise HTTPException(status_code=500, detail=str(e))

    body = report.to_dict(include_traces=trace)
    return AnalysisResponse(
        scores=body["scores"],
        total_score=body["total_score"],
        total_score_criteria=body["total_score_criteria"],
        document_info={
            "filename": filename,
            "source": source,
            "pages": pages,
            "text_length": len(text),
            "text_quality": {"ok": quality.ok, "reason": quality.reason, **quality.metrics},
        },
        processing_info={
            "processing_time_ms": body["elapsed_ms"],
            "predicate_evaluations": report.predicate_evaluations,
            "rules_path": RULES_PATH,
            "score_label": SCORE_LABEL,
            "workers": MAX_WORKERS,
        },
        traces=body.get("traces"),
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@app.middleware("http")
async def auth_middleware(request, call_next):
    """
    Global middleware to enforce Basic Auth on all requests.
    Skips auth for OPTIONS requests (CORS preflight).
    """
    if not AUTH_ENABLED or request.method == "OPTIONS":
        return await call_next(request)

    username = check_basic_auth(request.headers.get("Authorization"))
    if username is None:
        return JSONResponse(status_code=401, headers=_CHALLENGE, content={"detail": "Authentication required"})

    request.state.username = username
    return await call_next(request)


@app.get("/")
async def root(request: Request):
    """Root endpoint with API info."""
    return {
        "name": "ESG Report Scorer API",
        "version": "1.0.0",
        "authenticated_user": getattr(request.state, "username", "anonymous"),
        "auth_enabled": AUTH_ENABLED,
        "endpoints": ["/analyze/pdf", "/analyze/text", "/criteria", "/health"],
        "docs": "/docs",
    }


@app.get("/health")
async def health(request: Request):
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "authenticated_user": getattr(request.state, "username", "anonymous"),
        "auth_enabled": AUTH_ENABLED,
        "criteria": len(ANALYZER.evaluators),
        "rules_path": RULES_PATH,
        "timeout_s": ANALYSIS_TIMEOUT_S,
    }


@app.get("/criteria")
async def list_criteria(request: Request):
    """List the active criteria (built-in or from the rule file)."""
    from esgint.rubrics.result import FIELD_REGISTRY, TOTAL_SCORE_CRITERIA

    return {
        "criteria": ANALYZER.describe(),
        "total": len(ANALYZER.evaluators),
        "result_fields": FIELD_REGISTRY,
        "total_score_criteria": list(TOTAL_SCORE_CRITERIA),
    }


@app.post("/analyze/pdf", response_model=AnalysisResponse, response_model_exclude_none=True)
async def analyze_pdf_endpoint(
    request: Request,
    file: UploadFile = File(..., description="PDF report to score"),
    trace: bool = Query(False, description="Include per-criterion tier traces"),
    max_pages: Optional[int] = Query(None, ge=1, description="Only read the first N pages"),
):
    """Score an uploaded PDF report."""
    filename = file.filename or "unknown.pdf"

    if not filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=415, detail="Only .pdf files are supported")

    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Empty file")

    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(delete=False, suffix=".pdf") as tmp:
            tmp_path = tmp.name
            tmp.write(contents)

        try:
            doc = extract_pdf_text(tmp_path, max_pages=max_pages)
        except RuntimeError as e:
            # PyMuPDF raises RuntimeError subclasses for broken files
            raise HTTPException(status_code=422, detail=f"Cannot read PDF: {e}")
        if doc.pages == 0:
            raise HTTPException(status_code=422, detail="Cannot read PDF: no pages")

        return run_analysis(doc.text, filename=filename, source="pdf_text", pages=doc.pages, trace=trace)
    finally:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)


@app.post("/analyze/text", response_model=AnalysisResponse, response_model_exclude_none=True)
async def analyze_text_endpoint(
    payload: TextAnalysisRequest,
    trace: bool = Query(False, description="Include per-criterion tier traces"),
):
    """Score report text that was extracted elsewhere."""
    return run_analysis(
        payload.text,
        filename=payload.filename or "inline.txt",
        source="text",
        pages=None,
        trace=trace,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
