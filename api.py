"""
Tapu Verifier — FastAPI Server
===============================

RESTful API in front of the document verification pipeline. The wallet
front end calls it before it lets the user sign the registration transaction.

Endpoints:
    POST /verify            Upload a Tapu image + claimed Ada number
    GET  /health            Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production

Docs:
    http://localhost:8000/docs             # Swagger UI (auto-generated)
    http://localhost:8000/redoc            # ReDoc (alternative)
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field

from tapu_verifier import __version__
from tapu_verifier.config import VerifierSettings
from tapu_verifier.enrichment import apply_verification
from tapu_verifier.exceptions import InvalidClaimError
from tapu_verifier.models import LandRecordDraft, VerificationOutcome
from tapu_verifier.pipeline import DocumentVerificationPipeline

load_dotenv()

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB


# ─── Application Lifespan (pre-warm pipeline) ───────────────────────

_pipeline: DocumentVerificationPipeline | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the pipeline from TAPU_* settings on startup."""
    global _pipeline  # noqa: PLW0603
    _pipeline = DocumentVerificationPipeline(settings=VerifierSettings.from_env())
    yield
    _pipeline = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="Tapu Verifier API",
    description=(
        "Verifies a scanned Turkish land title (Tapu) against the Ada number "
        "claimed by the user before an on-chain registration. Authenticity "
        "gate, OCR with mode-switch retry, OCR-tolerant extraction and an "
        "explicit match score."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Response Schemas ────────────────────────────────────────────────


class VerifyResponse(BaseModel):
    """Outcome of one verification plus the form record after enrichment."""

    is_verified: bool
    message: str
    outcome: VerificationOutcome
    draft: LandRecordDraft

    model_config = {"json_schema_extra": {"example": {
        "is_verified": False,
        "message": (
            "Ada number mismatch: claimed '1234', document '5678'. "
            "Match score 0.0% (required 90%)."
        ),
        "outcome": {
            "status": "mismatch",
            "claimed": "1234",
            "extracted": "5678",
            "score": 0.0,
            "threshold": 0.9,
            "authenticity_confidence": 0.96,
        },
        "draft": {"ada_number": "1234", "division": "Eskişehir"},
    }}}


class HealthResponse(BaseModel):
    status: str
    version: str
    ocr_language: str
    match_threshold: float = Field(description="Minimum Ada match score")
    authenticity_threshold: float


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_pipeline() -> DocumentVerificationPipeline:
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialised")
    return _pipeline


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/verify",
    summary="Verify a Tapu image against the claimed Ada number",
    tags=["Verification"],
    responses={
        413: {"description": "File too large (max 10 MB)"},
        422: {"description": "Missing Ada number or empty file"},
        503: {"description": "Pipeline not yet initialised"},
    },
)
async def verify_document(
    file: UploadFile,
    ada_number: str = Form(...),
    parsel_number: str = Form(""),
    district: str = Form(""),
    area_value: str = Form(""),
    division: str = Form(""),
) -> VerifyResponse:
    """Run the verification pipeline on an uploaded image.

    Returns:
    - **is_verified**: `true` only when registration may proceed
    - **outcome**: rejected / engine_failure / unresolved / mismatch / verified,
      always with its confidence and score values
    - **draft**: the form record, blank fields filled from a verified document
    """
    if file.size and file.size > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large (max 10 MB)")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=422, detail="Uploaded file is empty")
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large (max 10 MB)")

    pipeline = _get_pipeline()
    try:
        outcome = await pipeline.verify(content, ada_number)
    except InvalidClaimError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    draft = LandRecordDraft(
        division=division,
        district=district,
        ada_number=ada_number.strip(),
        parsel_number=parsel_number,
        area_value=area_value,
    )

    return VerifyResponse(
        is_verified=outcome.is_verified,
        message=outcome.message,
        outcome=outcome,
        draft=apply_verification(draft, outcome),
    )


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and the active decision thresholds."""
    pipeline = _get_pipeline()
    return HealthResponse(
        status="healthy",
        version=__version__,
        ocr_language=pipeline.settings.ocr_language,
        match_threshold=pipeline.settings.match_threshold,
        authenticity_threshold=pipeline.settings.authenticity_threshold,
    )

