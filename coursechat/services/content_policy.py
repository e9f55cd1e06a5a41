from __future__ import annotations

import re
from typing import Iterable, Optional, Pattern, Protocol, Tuple


REFUSAL_MESSAGE = (
    "I'm sorry, but I can't provide information about my internal technologies or "
    "frameworks. How can I assist you with your studies or other inquiries?"
)


class PolicyCheck(Protocol):
    def is_prohibited(self, question: str) -> bool:
        ...


class ContentPolicy:
    """Keyword gate that keeps the assistant from discussing its own implementation."""

    PROHIBITED_KEYWORDS: Tuple[str, ...] = (
        "tech stack",
        "technology",
        "framework",
        "library",
        "backend",
        "frontend",
        "programming language",
        "architecture",
        "database",
        "server",
        "api",
        "integration",
        "deployment",
        "CI/CD",
        "version control",
        "DevOps",
        "containerization",
        "microservices",
        "cloud services",
        "scalability",
        "security protocols",
        "data storage",
        "machine learning",
        "artificial intelligence",
        "natural language processing",
        "deep learning",
    )

    def __init__(self, keywords: Optional[Iterable[str]] = None) -> None:
        self._keywords = tuple(keywords) if keywords is not None else self.PROHIBITED_KEYWORDS
        self._pattern = self._compile(self._keywords)

    @staticmethod
    def _compile(keywords: Tuple[str, ...]) -> Optional[Pattern[str]]:
        cleaned = [keyword.strip() for keyword in keywords if keyword and keyword.strip()]
        if not cleaned:
            return None
        alternation = "|".join(re.escape(keyword) for keyword in cleaned)
        return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)

    def extend(self, keywords: Iterable[str]) -> None:
        self._keywords = self._keywords + tuple(keywords)
        self._pattern = self._compile(self._keywords)

    def is_prohibited(self, question: str) -> bool:
        if self._pattern is None:
            return False
        return bool(self._pattern.search(question or ""))
