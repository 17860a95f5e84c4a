"""
HTTP layer and composition root.

create_app() builds the process-wide history stores (and, when enabled, the
persistence repository) and attaches them to app.state; routes reach them
through the get_* dependencies below.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Form, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from securescan.api.security import check_rate_limit, verify_api_token
from securescan.config import settings
from securescan.database import Base, SessionLocal, engine
from securescan.pipelines.extract_pipeline import extract_and_classify
from securescan.schemas.scan_schemas import (
    BatchScanResponse,
    Category,
    ClearResponse,
    ReportResponse,
    ScanRecord,
    SmsRecord,
    SourceType,
)
from securescan.services.history_service import MessageHistoryStore, ScanHistoryStore
from securescan.services.link_service import classify_url, simulate_category
from securescan.services.persistence_service import HistoryRepository
from securescan.services.sms_service import classify_sms, prepare_report
from securescan.utils.logging_config import StructuredLogger, init_logging, metrics, request_id_var
from securescan.utils.risk_levels import worst_result

VERSION = "0.1.0"

logger = StructuredLogger(__name__)


# ============== DEPENDENCIES ==============


def get_scan_history(request: Request) -> ScanHistoryStore:
    return request.app.state.scan_history


def get_message_history(request: Request) -> MessageHistoryStore:
    return request.app.state.message_history


def get_repository(request: Request) -> Optional[HistoryRepository]:
    return request.app.state.repository


def parse_source(source: Optional[str]) -> SourceType:
    value = (source or SourceType.MANUAL.value).strip().lower()
    try:
        return SourceType(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported source '{source}'. Must be one of {[s.value for s in SourceType]}.",
        )


def parse_category(category: Optional[str]) -> Category:
    value = (category or "").strip().lower()
    try:
        return Category(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported category '{category}'. Must be one of {[c.value for c in Category]}.",
        )


def require_field(name: str, value: Optional[str]) -> str:
    if not value or not value.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Field '{name}' is required.",
        )
    return value


protected = [Depends(verify_api_token), Depends(check_rate_limit)]

router = APIRouter()


@router.get("/health")
def health():
    """Health check endpoint - no auth required."""
    return {"status": "ok"}


@router.get("/status")
def status_info(
    scans: ScanHistoryStore = Depends(get_scan_history),
    messages: MessageHistoryStore = Depends(get_message_history),
    repository: Optional[HistoryRepository] = Depends(get_repository),
):
    """API status and configuration info."""
    return {
        "status": "ok",
        "version": VERSION,
        "environment": settings.environment,
        "auth_enabled": bool(settings.api_token),
        "persistence_enabled": repository is not None,
        "rate_limit": {
            "requests": settings.rate_limit_requests,
            "window_seconds": settings.rate_limit_window,
        },
        "history": {
            "scans": len(scans),
            "messages": len(messages),
        },
    }


@router.get("/metrics", dependencies=[Depends(verify_api_token)])
def metrics_info():
    return metrics.get_stats()


# ============== SCANNING ==============


@router.post("/scan/url", response_model=ScanRecord, dependencies=protected)
def scan_url(
    url: Optional[str] = Form(None),
    source: Optional[str] = Form(None),
    scans: ScanHistoryStore = Depends(get_scan_history),
    repository: Optional[HistoryRepository] = Depends(get_repository),
):
    """Classify a URL and add the result to the scan history."""
    url = require_field("url", url)
    source_type = parse_source(source)

    record = classify_url(url, source_type)
    scans.append(record)
    if repository is not None:
        repository.save_scans(scans)

    logger.info(
        "URL scanned",
        result_type=record.result_type.value,
        category=record.category.value,
        source_type=source_type.value,
    )
    return record


@router.post("/scan/sms", response_model=SmsRecord, dependencies=protected)
def scan_sms(
    sender: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    messages: MessageHistoryStore = Depends(get_message_history),
    repository: Optional[HistoryRepository] = Depends(get_repository),
):
    """Classify an SMS and add it to the message history."""
    sender = require_field("sender", sender)
    content = require_field("content", content)

    record = classify_sms(sender, content)
    messages.append(record)
    if repository is not None:
        repository.save_messages(messages)

    logger.info("SMS scanned", risk_level=record.risk_level.value)
    return record


@router.post("/scan/simulate", response_model=ScanRecord, dependencies=protected)
def scan_simulate(
    url: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    source: Optional[str] = Form(None),
):
    """Demo mode: the record `url` would get if it fell into `category`. Not recorded."""
    url = require_field("url", url)
    category = parse_category(require_field("category", category))
    source_type = parse_source(source)

    record = simulate_category(url, category, source_type)
    logger.info("Category simulated", category=category.value, source_type=source_type.value)
    return record


@router.post("/scan/text", response_model=BatchScanResponse, dependencies=protected)
def scan_text(
    text: Optional[str] = Form(None),
    source: Optional[str] = Form(None),
):
    """Classify every link found in free text. Results are not recorded."""
    text = require_field("text", text)
    source_type = parse_source(source)

    results = extract_and_classify(text, source_type)
    logger.info("Text scanned", links_found=len(results))
    return BatchScanResponse(
        worst_result=worst_result(r.result_type for r in results),
        results=results,
    )


# ============== HISTORY ==============


@router.get("/history/scans", response_model=List[ScanRecord], dependencies=protected)
def list_scans(
    limit: Optional[int] = None,
    scans: ScanHistoryStore = Depends(get_scan_history),
):
    records = scans.list()
    if limit is not None:
        records = records[:max(limit, 0)]
    return records


@router.get("/history/scans/recent", response_model=List[ScanRecord], dependencies=protected)
def recent_scans(scans: ScanHistoryStore = Depends(get_scan_history)):
    """The few newest scans shown on the home screen."""
    return scans.recent(settings.recent_history_limit)


@router.delete("/history/scans", response_model=ClearResponse, dependencies=protected)
def clear_scans(
    scans: ScanHistoryStore = Depends(get_scan_history),
    repository: Optional[HistoryRepository] = Depends(get_repository),
):
    cleared = scans.clear()
    if repository is not None:
        repository.save_scans(scans)
    return ClearResponse(cleared=cleared)


@router.get("/history/messages", response_model=List[SmsRecord], dependencies=protected)
def list_messages(
    limit: Optional[int] = None,
    messages: MessageHistoryStore = Depends(get_message_history),
):
    records = messages.list()
    if limit is not None:
        records = records[:max(limit, 0)]
    return records


@router.post("/history/messages/report", response_model=ReportResponse, dependencies=protected)
def report_message(
    sender: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    messages: MessageHistoryStore = Depends(get_message_history),
    repository: Optional[HistoryRepository] = Depends(get_repository),
):
    """
    Mark a stored message as reported and return the text to forward.

    The message is looked up by exact sender and content; with duplicates
    only the first stored one is marked.
    """
    sender = require_field("sender", sender)
    content = require_field("content", content)

    record = messages.mark_reported_record(sender, content)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No message with this sender and content in history.",
        )
    if repository is not None:
        repository.save_messages(messages)

    logger.info("SMS reported", sender=sender)
    return ReportResponse(reported=True, report_text=prepare_report(record))


@router.delete("/history/messages", response_model=ClearResponse, dependencies=protected)
def clear_messages(
    messages: MessageHistoryStore = Depends(get_message_history),
    repository: Optional[HistoryRepository] = Depends(get_repository),
):
    cleared = messages.clear()
    if repository is not None:
        repository.save_messages(messages)
    return ClearResponse(cleared=cleared)


# ============== APP FACTORY ==============


def build_repository() -> HistoryRepository:
    Base.metadata.create_all(bind=engine)
    return HistoryRepository(SessionLocal)


def create_app(
    persist_history: Optional[bool] = None,
    repository: Optional[HistoryRepository] = None,
) -> FastAPI:
    """
    Build the application with fresh, empty history stores.

    With persistence on (argument, else settings.persist_history) the stores
    are restored from the repository now and saved after every change.
    """
    app = FastAPI(
        title="SecureScan API",
        version=VERSION,
        description="Static URL and SMS risk classification",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        if hasattr(request.state, "rate_limit_remaining"):
            response.headers["X-RateLimit-Limit"] = str(request.state.rate_limit_limit)
            response.headers["X-RateLimit-Remaining"] = str(request.state.rate_limit_remaining)
        return response

    app.include_router(router)

    app.state.scan_history = ScanHistoryStore()
    app.state.message_history = MessageHistoryStore()

    persist = settings.persist_history if persist_history is None else persist_history
    if repository is None and persist:
        repository = build_repository()
    app.state.repository = repository

    if repository is not None:
        loaded_scans = repository.load_scans(app.state.scan_history)
        loaded_messages = repository.load_messages(app.state.message_history)
        logger.info("History restored", scans=loaded_scans, messages=loaded_messages)

    return app


init_logging()

app = create_app()
