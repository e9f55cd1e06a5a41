from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from ..schemas.chat import (
    AskResponse,
    ChatSession,
    Message,
    SessionHistory,
    SessionStarted,
)
from .cache import ExtractionCache
from .catalog import MaterialCatalog, MaterialFilter
from .content_policy import REFUSAL_MESSAGE, PolicyCheck
from .errors import (
    ChatServiceError,
    ExtractionFailed,
    InvalidRequest,
    MaterialLookupFailed,
    NoMaterialFound,
    NotFound,
)
from .extractor import split_paragraphs
from .llm_service import LLMService
from .metrics import MetricsTracker
from .ranker import RelevanceRanker, build_context
from .session_store import SessionLocks, SessionStore


LOGGER = logging.getLogger(__name__)


class Extractor(Protocol):
    def fetch(self, locator: str) -> bytes:
        ...

    def parse(self, payload: bytes, locator: str) -> str:
        ...

    def extract_text(self, locator: str) -> str:
        ...


class ChatService:
    """Course-scoped question answering over the PDFs bound to a chat session.

    Each question runs forward through the content policy, text extraction,
    relevance ranking and answer synthesis. Only the session transcript
    survives between questions.
    """

    def __init__(
        self,
        catalog: MaterialCatalog,
        store: SessionStore,
        extractor: Extractor,
        ranker: RelevanceRanker,
        llm: LLMService,
        policy: PolicyCheck,
        cache: Optional[ExtractionCache] = None,
        metrics: Optional[MetricsTracker] = None,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.extractor = extractor
        self.ranker = ranker
        self.llm = llm
        self.policy = policy
        self.cache = cache
        self.metrics = metrics
        self.session_locks = SessionLocks()

    def start_session(
        self,
        year: str,
        semester: str,
        subject: str,
        regulation: str,
        unit: str,
        user_id: str,
    ) -> SessionStarted:
        fields = {
            "year": year,
            "semester": semester,
            "subject": subject,
            "regulation": regulation,
            "unit": unit,
            "user_id": user_id,
        }
        missing = [name for name, value in fields.items() if not (value or "").strip()]
        if missing:
            raise InvalidRequest(f"Missing required fields: {', '.join(missing)}.")

        material_filter = MaterialFilter(year=year, semester=semester, subject=subject, unit=unit)
        try:
            materials = self.catalog.find_documents(material_filter)
        except Exception as exc:
            LOGGER.exception("Course material lookup failed for %s", material_filter)
            raise MaterialLookupFailed("Failed to fetch course material.") from exc

        locators = self.catalog.locators(materials)
        if not locators:
            raise NoMaterialFound("No course material found for the selected criteria.")

        session = ChatSession(
            id=uuid.uuid4().hex,
            user_id=user_id,
            year=year,
            semester=semester,
            subject=subject,
            regulation=regulation,
            unit=unit,
            created_at=datetime.now(timezone.utc),
            document_references=locators,
            messages=[],
        )
        self.store.create(session)
        if self.metrics:
            self.metrics.record_session()
        LOGGER.info(
            "start_session session=%s user=%s documents=%d",
            session.id,
            user_id,
            len(session.document_references),
        )
        return SessionStarted(
            session_id=session.id,
            subject=subject,
            regulation=regulation,
            created_at=session.created_at,
        )

    def _chunks_for(self, locator: str) -> List[str]:
        if not self.cache:
            return split_paragraphs(self.extractor.extract_text(locator))
        payload = self.extractor.fetch(locator)
        digest = hashlib.sha256(payload).hexdigest()
        cached = self.cache.get(locator, digest)
        if cached is not None:
            return cached
        chunks = split_paragraphs(self.extractor.parse(payload, locator))
        self.cache.set(locator, digest, chunks)
        return chunks

    def _collect_chunks(self, session: ChatSession) -> List[str]:
        chunks: List[str] = []
        for locator in session.document_references:
            try:
                chunks.extend(self._chunks_for(locator))
            except ExtractionFailed as exc:
                LOGGER.warning("Skipping document %s: %s", locator, exc)
            except Exception:
                LOGGER.exception("Unexpected failure extracting %s; skipping", locator)
        return chunks

    @staticmethod
    def _append_exchange(session: ChatSession, question: str, answer: str) -> None:
        details = session.subject_details()
        session.messages.append(Message(role="user", content=question, subject_details=details))
        session.messages.append(Message(role="system", content=answer, subject_details=details))

    def _record(self, user_id: str, outcome: str) -> None:
        if self.metrics:
            self.metrics.record(user_id, outcome)

    def ask_question(self, session_id: str, question: str) -> AskResponse:
        if not (session_id or "").strip() or not (question or "").strip():
            raise InvalidRequest("Session id and question are required.")

        with self.session_locks.hold(session_id):
            session = self.store.get(session_id)
            if session is None:
                raise NotFound("Chat session not found.")

            if self.policy.is_prohibited(question):
                self._append_exchange(session, question, REFUSAL_MESSAGE)
                self.store.save_messages(session)
                self._record(session.user_id, "refused")
                LOGGER.info("ask_question session=%s outcome=refused", session_id)
                return AskResponse(response=REFUSAL_MESSAGE, refused=True)

            if not session.document_references:
                raise NoMaterialFound("No course material is bound to this chat session.")

            try:
                chunks = self._collect_chunks(session)
                ranked = self.ranker.rank(question, chunks)
                answer = self.llm.synthesize(question, build_context(ranked))
            except ChatServiceError:
                self._record(session.user_id, "failed")
                raise

            self._append_exchange(session, question, answer)
            self.store.save_messages(session)
            self._record(session.user_id, "answered")
            LOGGER.info(
                "ask_question session=%s outcome=answered chunks=%d selected=%d",
                session_id,
                len(chunks),
                len(ranked),
            )
            return AskResponse(response=answer, refused=False)

    def get_history(self, session_id: str, user_id: str) -> SessionHistory:
        if not (user_id or "").strip():
            raise InvalidRequest("User id is required.")
        session = self.store.get(session_id, user_id=user_id)
        if session is None:
            raise NotFound("Chat session not found.")
        return SessionHistory(
            session_id=session.id,
            user_id=session.user_id,
            created_at=session.created_at,
            document_references=list(session.document_references),
            messages=list(session.messages),
        )

    def get_user_sessions(self, user_id: str) -> List[ChatSession]:
        if not (user_id or "").strip():
            raise InvalidRequest("User id is required.")
        return self.store.list_for_user(user_id)
