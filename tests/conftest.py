import duckdb
import pytest

from coursechat.schemas.chat import CourseMaterial
from coursechat.services.cache import ExtractionCache
from coursechat.services.catalog import MaterialCatalog
from coursechat.services.chat_service import ChatService
from coursechat.services.content_policy import ContentPolicy
from coursechat.services.llm_service import LLMService
from coursechat.services.metrics import MetricsTracker
from coursechat.services.ranker import RelevanceRanker
from coursechat.services.session_store import SessionStore

from fakes import (
    DS_UNIT2_TEXT,
    UPLOADS,
    DictExtractor,
    FakeCompletions,
    KeywordEmbedder,
    make_llm_client,
)


@pytest.fixture
def connection():
    conn = duckdb.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def catalog(connection) -> MaterialCatalog:
    catalog = MaterialCatalog(connection, uploads_base_url=UPLOADS)
    catalog.register(
        CourseMaterial(
            id="ds-2",
            year="2nd Year",
            semester="1st Semester",
            subject="Data Structures",
            regulation="R20",
            units="2nd unit",
            files=["ds_unit2.pdf"],
        )
    )
    return catalog


@pytest.fixture
def store(connection) -> SessionStore:
    return SessionStore(connection)


@pytest.fixture
def embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def extractor() -> DictExtractor:
    return DictExtractor({f"{UPLOADS}/ds_unit2.pdf": DS_UNIT2_TEXT})


@pytest.fixture
def completions() -> FakeCompletions:
    return FakeCompletions()


@pytest.fixture
def chat_service(catalog, store, extractor, embedder, completions) -> ChatService:
    return ChatService(
        catalog=catalog,
        store=store,
        extractor=extractor,
        ranker=RelevanceRanker(embedder, top_k=3, max_workers=2),
        llm=LLMService(client=make_llm_client(completions)),
        policy=ContentPolicy(),
        metrics=MetricsTracker(),
    )


@pytest.fixture
def cached_chat_service(catalog, store, extractor, embedder, completions) -> ChatService:
    return ChatService(
        catalog=catalog,
        store=store,
        extractor=extractor,
        ranker=RelevanceRanker(embedder, top_k=3, max_workers=2),
        llm=LLMService(client=make_llm_client(completions)),
        policy=ContentPolicy(),
        cache=ExtractionCache(),
        metrics=MetricsTracker(),
    )
