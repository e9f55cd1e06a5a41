from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent.parent


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration handed to each component at construction."""

    groq_api_key: Optional[str] = None
    groq_model: str = "llama-3.1-8b-instant"
    llm_temperature: float = 0.1
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    database_path: str = str(BASE_DIR / "storage" / "coursechat.duckdb")
    catalog_manifest: Path = BASE_DIR / "resources" / "catalog" / "materials.csv"
    uploads_base_url: str = "http://localhost:5001/uploads"
    top_k: int = 3
    embedding_workers: int = 4
    extraction_timeout: float = 30.0
    enable_extraction_cache: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        defaults = cls()
        manifest = os.getenv("CATALOG_MANIFEST")
        return cls(
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            groq_model=os.getenv("GROQ_MODEL", defaults.groq_model),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", str(defaults.llm_temperature))),
            embedding_model=os.getenv("EMBEDDING_MODEL", defaults.embedding_model),
            database_path=os.getenv("COURSECHAT_DB_PATH", defaults.database_path),
            catalog_manifest=Path(manifest) if manifest else defaults.catalog_manifest,
            uploads_base_url=os.getenv("UPLOADS_BASE_URL", defaults.uploads_base_url).rstrip("/"),
            top_k=int(os.getenv("TOP_K", str(defaults.top_k))),
            embedding_workers=int(os.getenv("EMBEDDING_WORKERS", str(defaults.embedding_workers))),
            extraction_timeout=float(os.getenv("EXTRACTION_TIMEOUT", str(defaults.extraction_timeout))),
            enable_extraction_cache=_env_flag("ENABLE_EXTRACTION_CACHE"),
        )
