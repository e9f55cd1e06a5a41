from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, List, Optional

import duckdb
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .schemas.chat import (
    AskRequest,
    AskResponse,
    ChatSession,
    CourseMaterial,
    SessionHistory,
    SessionStarted,
    StartChatRequest,
)
from .services.cache import ExtractionCache
from .services.catalog import MaterialCatalog, MaterialFilter
from .services.chat_service import ChatService
from .services.content_policy import ContentPolicy
from .services.embeddings import EmbeddingService
from .services.errors import ChatServiceError
from .services.extractor import TextExtractor
from .services.llm_service import LLMService
from .services.metrics import MetricsTracker
from .services.ranker import RelevanceRanker
from .services.session_store import SessionStore


LOGGER = logging.getLogger("coursechat")
logging.basicConfig(level=logging.INFO)


def build_chat_service(settings: Settings) -> ChatService:
    if settings.database_path != ":memory:":
        Path(settings.database_path).parent.mkdir(parents=True, exist_ok=True)
    connection = duckdb.connect(settings.database_path)
    catalog = MaterialCatalog(connection, uploads_base_url=settings.uploads_base_url)
    if not catalog.find_documents(MaterialFilter()):
        catalog.load_manifest(settings.catalog_manifest)
    return ChatService(
        catalog=catalog,
        store=SessionStore(connection),
        extractor=TextExtractor(timeout=settings.extraction_timeout),
        ranker=RelevanceRanker(
            EmbeddingService(model_name=settings.embedding_model),
            top_k=settings.top_k,
            max_workers=settings.embedding_workers,
        ),
        llm=LLMService(
            api_key=settings.groq_api_key,
            model_name=settings.groq_model,
            temperature=settings.llm_temperature,
        ),
        policy=ContentPolicy(),
        cache=ExtractionCache() if settings.enable_extraction_cache else None,
        metrics=MetricsTracker(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A pre-wired service (tests, embedding) is left in place.
    if getattr(app.state, "chat_service", None) is None:
        app.state.chat_service = build_chat_service(Settings.from_env())
    chat_service: ChatService = app.state.chat_service
    if chat_service.llm and not chat_service.llm.is_configured:
        LOGGER.warning("GROQ_API_KEY is not set; questions will fail at answer synthesis.")

    try:
        yield
    finally:
        if chat_service.cache:
            chat_service.cache.clear()


app = FastAPI(
    title="Campusify Course Chat",
    description="Course-scoped question answering over uploaded course material.",
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ChatServiceError)
async def chat_service_error_handler(request: Request, exc: ChatServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


def get_chat_service() -> ChatService:
    return app.state.chat_service


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/materials", response_model=List[CourseMaterial])
def materials(
    year: Optional[str] = None,
    semester: Optional[str] = None,
    subject: Optional[str] = None,
    unit: Optional[str] = None,
) -> List[CourseMaterial]:
    catalog = get_chat_service().catalog
    return catalog.find_documents(
        MaterialFilter(year=year, semester=semester, subject=subject, unit=unit)
    )


@app.post("/chat/start", response_model=SessionStarted, status_code=status.HTTP_201_CREATED)
def start_chat(payload: StartChatRequest) -> SessionStarted:
    return get_chat_service().start_session(
        year=payload.year,
        semester=payload.semester,
        subject=payload.subject,
        regulation=payload.regulation,
        unit=payload.unit,
        user_id=payload.user_id,
    )


@app.post("/chat/ask", response_model=AskResponse)
def ask(payload: AskRequest) -> AskResponse:
    return get_chat_service().ask_question(payload.session_id, payload.question)


@app.get("/chat/{session_id}/history", response_model=SessionHistory)
def history(session_id: str, user_id: str = "") -> SessionHistory:
    return get_chat_service().get_history(session_id, user_id)


@app.get("/chat/users/{user_id}", response_model=List[ChatSession])
def user_sessions(user_id: str) -> List[ChatSession]:
    return get_chat_service().get_user_sessions(user_id)


@app.get("/analytics")
def analytics() -> Dict[str, object]:
    chat_service = get_chat_service()
    return {
        "questions": chat_service.metrics.snapshot() if chat_service.metrics else {},
        "cache_entries": chat_service.cache.size() if chat_service.cache else 0,
        "cache": chat_service.cache.stats() if chat_service.cache else {},
        "extraction_cache_enabled": chat_service.cache is not None,
    }
