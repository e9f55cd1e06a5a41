from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from .errors import EmbeddingFailed


LOGGER = logging.getLogger(__name__)


class Embedder(Protocol):
    def embed(self, text: str) -> List[float]:
        ...


@dataclass(frozen=True)
class RankedChunk:
    text: str
    score: float
    position: int


def cosine_similarity(first: Sequence[float], second: Sequence[float]) -> float:
    """Cosine of the angle between two vectors; 0.0 when either has no magnitude."""
    if not first or not second:
        return 0.0
    if len(first) != len(second):
        raise ValueError(f"Vector length mismatch: {len(first)} != {len(second)}")
    dot = sum(a * b for a, b in zip(first, second))
    magnitude = math.sqrt(sum(a * a for a in first)) * math.sqrt(sum(b * b for b in second))
    if magnitude == 0:
        return 0.0
    return dot / magnitude


def build_context(ranked: Sequence[RankedChunk]) -> str:
    return "\n\n".join(chunk.text for chunk in ranked)


class RelevanceRanker:
    """Scores chunks against a question by embedding similarity and keeps the top K."""

    def __init__(self, embedder: Embedder, top_k: int = 3, max_workers: int = 4) -> None:
        self.embedder = embedder
        self.top_k = top_k
        self.max_workers = max_workers

    def _embed_chunk(self, chunk: str) -> List[float]:
        try:
            return self.embedder.embed(chunk)
        except Exception as exc:
            LOGGER.warning("Embedding failed for chunk %r: %s", chunk[:60], exc)
            return []

    def rank(self, question: str, chunks: Sequence[str]) -> List[RankedChunk]:
        try:
            question_vector = self.embedder.embed(question)
        except Exception as exc:
            LOGGER.exception("Question embedding failed")
            raise EmbeddingFailed("Failed to process the question.") from exc

        if not chunks:
            return []

        workers = max(1, min(self.max_workers, len(chunks)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            chunk_vectors = list(executor.map(self._embed_chunk, chunks))

        scored: List[RankedChunk] = []
        for position, (chunk, vector) in enumerate(zip(chunks, chunk_vectors)):
            try:
                score = cosine_similarity(question_vector, vector)
            except ValueError as exc:
                LOGGER.warning("Scoring chunk %d as non-matching: %s", position, exc)
                score = 0.0
            scored.append(RankedChunk(text=chunk, score=score, position=position))

        # sorted() is stable, so equal scores keep their original chunk order
        ordered = sorted(scored, key=lambda item: item.score, reverse=True)
        return ordered[: self.top_k]
