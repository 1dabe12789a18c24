"""
Exhaustive cosine-similarity search.

Every query scans the whole corpus, O(N * dim). There is no index structure,
which is fine for batch and offline use but not for low-latency serving over
large vocabularies.

Rules of the scan:
    * candidates element-wise identical to the query are skipped,
    * the best score starts at 0.0 and only a strictly greater score replaces it,
      so ties keep the first candidate in corpus order,
    * a zero-magnitude query or candidate raises NullOrZeroVectorException,
    * a candidate of another length raises VectorDimensionMismatchException,
    * no qualifying candidate gives SimilarityResult.not_found().
"""
import logging
from typing import Any, Iterable, Optional, Tuple

import numpy as np

from wordvec_data_model.index_packets import SimilarityResult
from wordvec_exception_model.exception import NullOrZeroVectorException, VectorDimensionMismatchException

logger = logging.getLogger(__name__)


def _as_vector(vec: Any) -> np.ndarray:
    arr = np.asarray(vec, dtype=np.float64)
    return arr.ravel() if arr.ndim > 1 else arr


def _norm(vec: np.ndarray, word: Optional[str] = None) -> float:
    norm = float(np.linalg.norm(vec))
    if vec.size == 0 or norm == 0.0:
        raise NullOrZeroVectorException("Cosine similarity is undefined for a zero-magnitude vector", word)
    return norm


def cosine_similarity(a: Any, b: Any) -> float:
    """dot(a, b) / (|a| * |b|)."""
    a = _as_vector(a)
    b = _as_vector(b)
    if a.shape != b.shape:
        raise VectorDimensionMismatchException("Vectors must have the same length", len(b), len(a))
    return float(np.dot(a, b) / (_norm(a) * _norm(b)))


class _Scan:
    """Running state of one scan, keeping the query norm computed once."""

    def __init__(self, query: Any):
        self.query = _as_vector(query)
        self._query_norm: Optional[float] = None
        self.best = SimilarityResult.not_found()
        self.scanned = 0

    def offer(self, candidate: Any, word: Optional[str] = None) -> None:
        candidate = _as_vector(candidate)
        self.scanned += 1
        if np.array_equal(self.query, candidate):
            return
        if candidate.shape != self.query.shape:
            raise VectorDimensionMismatchException(
                "Corpus vector length differs from the query", len(candidate), len(self.query), word=word)
        if self._query_norm is None:
            self._query_norm = _norm(self.query)

        score = float(np.dot(self.query, candidate) / (self._query_norm * _norm(candidate, word)))
        if score > self.best.score:
            self.best = SimilarityResult(vector=candidate, score=score, found=True, word=word)


def most_similar(query: Any, corpus: Iterable[Any]) -> SimilarityResult:
    """
    Return the corpus vector with the highest cosine similarity to ``query``.

    Args:
        query: Query vector.
        corpus: Iterable of candidate vectors; consumed once.
    """
    scan = _Scan(query)
    for candidate in corpus:
        scan.offer(candidate)
    logger.debug(f"Scanned {scan.scanned} vectors, found={scan.best.found}, score={scan.best.score:.6f}")
    return scan.best


def most_similar_item(query: Any, items: Iterable[Tuple[str, Any]]) -> SimilarityResult:
    """Same as ``most_similar`` over (word, vector) pairs; the result carries the word."""
    scan = _Scan(query)
    for word, candidate in items:
        scan.offer(candidate, word)
    logger.debug(f"Scanned {scan.scanned} words, best={scan.best.word!r}, score={scan.best.score:.6f}")
    return scan.best
