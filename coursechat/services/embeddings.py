from __future__ import annotations

import logging
from threading import Lock
from typing import List, Optional

from chromadb.utils import embedding_functions


LOGGER = logging.getLogger(__name__)


class EmbeddingService:
    """Embeds single texts with a sentence-transformers model.

    The model is loaded on first use so that constructing the service stays cheap.
    """

    def __init__(self, model_name: str = "sentence-transformers/all-MiniLM-L6-v2") -> None:
        self.model_name = model_name
        self._function: Optional[embedding_functions.SentenceTransformerEmbeddingFunction] = None
        self._lock = Lock()

    def _ensure_function(self) -> embedding_functions.SentenceTransformerEmbeddingFunction:
        with self._lock:
            if self._function is None:
                LOGGER.info("Loading embedding model %s", self.model_name)
                self._function = embedding_functions.SentenceTransformerEmbeddingFunction(
                    model_name=self.model_name
                )
            return self._function

    def embed(self, text: str) -> List[float]:
        function = self._ensure_function()
        vectors = function([text])
        return [float(value) for value in vectors[0]]
