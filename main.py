from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from functools import lru_cache
from typing import Optional
from config import settings
from agents.tubuyaki_processor import TubuyakiProcessor
from agents.feedback_processor import FeedbackProcessor
from processors.transform_engine import TransformEngine
from services.database import DatabaseService
from services.query_service import QueryService
from models.tubuyaki import TubuyakiCreateRequest, TubuyakiUpdateRequest
from utils.date_range import local_timezone
from utils.errors import NotFoundError, StoreError, ValidationError
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Tubuyaki Core",
    version="0.1.0",
    description="Turns short spoken or typed notes into structured records"
)


# Dependencies - built lazily so importing the app never opens a connection

@lru_cache
def get_database() -> DatabaseService:
    return DatabaseService()


@lru_cache
def get_transform_engine() -> TransformEngine:
    return TransformEngine.from_settings(settings)


def get_processor(
    db: DatabaseService = Depends(get_database),
    engine: TransformEngine = Depends(get_transform_engine),
) -> TubuyakiProcessor:
    return TubuyakiProcessor(db=db, engine=engine, credentials=settings.llm_credentials())


def get_query_service(db: DatabaseService = Depends(get_database)) -> QueryService:
    return QueryService(
        db=db,
        tz=local_timezone(settings.TUBUYAKI_TIMEZONE),
        search_limit=settings.TUBUYAKI_SEARCH_LIMIT,
    )


def get_feedback_processor(db: DatabaseService = Depends(get_database)) -> FeedbackProcessor:
    return FeedbackProcessor(db=db)


# Error responses: {"error": "<message>"}

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error": "Not found"})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"{request.method} {request.url.path} store error: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} error: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "service": "Tubuyaki Core",
        "llm_configured": settings.llm_credentials() is not None
    }


@app.post("/api/tubuyaki", status_code=201)
def create_tubuyaki(
    request: TubuyakiCreateRequest,
    processor: TubuyakiProcessor = Depends(get_processor)
):
    """Save a new tubuyaki and transform it

    The record is saved even when the transform cannot run; the response
    then carries a `warning` and the record status is pending or error.

    Returns:
        201 with the record (+ warning, + confirmQuestion)
    """
    outcome = processor.create(request.raw_text)
    return JSONResponse(status_code=201, content=outcome.to_api())


@app.get("/api/tubuyaki")
def list_tubuyaki(
    all_records: bool = Query(False, alias="all"),
    query_service: QueryService = Depends(get_query_service)
):
    """Today's tubuyaki (default) or every tubuyaki with ?all=true, newest first"""
    records = query_service.list_all() if all_records else query_service.list_today()
    return [record.to_api() for record in records]


@app.get("/api/tubuyaki/search")
def search_tubuyaki(
    q: Optional[str] = None,
    intent: Optional[str] = None,
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    query_service: QueryService = Depends(get_query_service)
):
    """Search by text, intent tag and date range (inclusive), max 50 newest first"""
    records = query_service.search(query=q, intent=intent, date_from=date_from, date_to=date_to)
    return [record.to_api() for record in records]


@app.get("/api/tubuyaki/{record_id}")
def get_tubuyaki(
    record_id: str,
    query_service: QueryService = Depends(get_query_service)
):
    """Get a single tubuyaki"""
    return query_service.get(record_id).to_api()


@app.patch("/api/tubuyaki/{record_id}")
def update_tubuyaki(
    record_id: str,
    request: TubuyakiUpdateRequest,
    processor: TubuyakiProcessor = Depends(get_processor),
    feedback_processor: FeedbackProcessor = Depends(get_feedback_processor)
):
    """Record feedback, or reprocess with edited text

    Body:
        {"feedback": "thumbs_up"|"thumbs_down", "feedbackDetail": ...}
        {"reprocess": true, "rawText": "..."}
    """
    if request.reprocess:
        logger.info(f"Reprocess request for tubuyaki: {record_id}")
        outcome = processor.reprocess(record_id, request.raw_text)
        return outcome.to_api()

    record = feedback_processor.set_feedback(
        record_id,
        feedback=request.feedback,
        feedback_detail=request.feedback_detail
    )
    return record.to_api()


@app.delete("/api/tubuyaki/{record_id}")
def delete_tubuyaki(
    record_id: str,
    processor: TubuyakiProcessor = Depends(get_processor)
):
    """Delete a tubuyaki in any state"""
    processor.delete(record_id)
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
