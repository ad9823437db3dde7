import logging
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class VectorHit(NamedTuple):
    id: str
    score: float
    metadata: Dict[str, Any]


class ExampleVectorIndex:
    """
    In-memory vector index for SQL example descriptions.

    Brute-force cosine ranking. Build one per pipeline run so entries
    never leak between questions.
    """

    def __init__(self):
        self._entries: List[tuple] = []

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, entry_id: str, vector: Sequence[float], metadata: Optional[Dict[str, Any]] = None):
        """Add one entry. Re-adding an id appends a second entry."""
        self._entries.append((entry_id, np.asarray(vector, dtype=float), metadata or {}))

    def query(self, vector: Sequence[float], top_k: int = 5) -> List[VectorHit]:
        """
        Top-k entries by cosine similarity, best first.

        Equal scores keep insertion order.
        """
        if top_k <= 0 or not self._entries:
            return []
        query_vec = np.asarray(vector, dtype=float)
        logger.debug("Ranking %d entries for top %d", len(self._entries), top_k)
        hits = [
            VectorHit(entry_id, self._cosine_similarity(query_vec, vec), metadata)
            for entry_id, vec, metadata in self._entries
        ]
        # sorted() is stable
        hits = sorted(hits, key=lambda h: h.score, reverse=True)
        return hits[:top_k]

    def _cosine_similarity(self, a: np.ndarray, b: np.ndarray) -> float:
        """Cosine similarity; 0.0 for empty, zero-norm or mismatched vectors."""
        if a.size == 0 or b.size == 0 or a.shape != b.shape:
            return 0.0
        norm_a = np.linalg.norm(a)
        norm_b = np.linalg.norm(b)
        if norm_a == 0 or norm_b == 0:
            return 0.0
        # Rounding can push identical vectors just past 1.0
        return float(np.clip(np.dot(a, b) / (norm_a * norm_b), -1.0, 1.0))
