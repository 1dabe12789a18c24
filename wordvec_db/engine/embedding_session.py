"""
Embedding session: the public entry point tying parser, codec, store and search
together.

BUILD FLOW:
═══════════

    vec file ──▶ parse_vector_file ──▶ RecordChannel ──▶ encode_vector ──▶ store.put_many
                 (producer thread)     (bounded queue)   (consumer, batches of batch_size)

1. [PARSE] header dimension must equal schema.dim, checked together with the
   first record before the database is touched
2. [SCHEMA] CREATE TABLE (fails if the table already exists, no incremental builds)
3. [WRITE] records are committed in transactions of ``batch_size`` rows
4. [INDEX] CREATE INDEX on word
Any parse or write error stops the build; batches committed before the failure
stay in the database.

READ FLOW:
══════════

    store.get / store.scan_items ──▶ decode_vector ──▶ length == schema.dim ? ──▶ caller
                                                                       └─ no ──▶ VectorDimensionMismatchException

THREADING:
══════════
A session owns one SQLite connection and must not be shared between threads.
Each thread opens its own session over the same database file. Sessions are
context managers and always release their connection on exit.
"""
import logging
import time
from itertools import islice
from pathlib import Path
from typing import IO, Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from wordvec_data_model.index_packets import EmbeddingSchema, SimilarityResult, WordPacket
from wordvec_data_model.vector_codec import encode_vector, decode_vector
from wordvec_db.config import WordvecSettings, get_settings, schema_from_settings
from wordvec_db.ingestion.record_channel import RecordChannel
from wordvec_db.ingestion.vec_file_parser import parse_vector_file
from wordvec_db.persistence.sqlite_embedding_store import SQLiteEmbeddingStore
from wordvec_db.search.aggregator import average_words
from wordvec_db.search.similarity import most_similar, most_similar_item
from wordvec_exception_model.exception import VectorDimensionMismatchException

logger = logging.getLogger(__name__)


def _batched(records: Iterable[WordPacket], size: int) -> Iterator[List[WordPacket]]:
    iterator = iter(records)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


def _prepend(first: WordPacket, rest: Iterator[WordPacket]) -> Iterator[WordPacket]:
    yield first
    yield from rest


class EmbeddingSession:
    """
    A session over one embedding store.

    Not safe for concurrent use: every thread must open its own session.
    """

    def __init__(self, store: SQLiteEmbeddingStore, settings: Optional[WordvecSettings] = None):
        settings = settings or get_settings()
        self._store = store
        self._schema = store.schema
        self._channel_capacity = settings.channel_capacity
        self._batch_size = max(1, settings.batch_size)

    @classmethod
    def open(cls,
             db_path: Optional[Union[str, Path]] = None,
             schema: Optional[EmbeddingSchema] = None,
             in_memory: Optional[bool] = None,
             settings: Optional[WordvecSettings] = None) -> 'EmbeddingSession':
        """
        Open a session on ``db_path`` (defaults come from settings).

        With ``in_memory`` the on-disk database is copied into memory first, which
        makes queries much faster but takes a while for large vocabularies.
        """
        settings = settings or get_settings()
        db_path = settings.db_path if db_path is None else db_path
        schema = schema or schema_from_settings(settings)
        in_memory = settings.in_memory if in_memory is None else in_memory

        if in_memory:
            store = SQLiteEmbeddingStore.open_in_memory_copy(db_path, schema)
        else:
            store = SQLiteEmbeddingStore(db_path, schema)
        return cls(store, settings)

    @classmethod
    def open_in_memory(cls, db_path: Union[str, Path], schema: Optional[EmbeddingSchema] = None,
                       settings: Optional[WordvecSettings] = None) -> 'EmbeddingSession':
        return cls.open(db_path, schema=schema, in_memory=True, settings=settings)

    @property
    def schema(self) -> EmbeddingSchema:
        return self._schema

    # ------------------------------------------------------------------ build

    def build(self, stream: IO) -> int:
        """
        Create the embeddings table and import every record of a vector file.

        Returns:
            Number of stored words.
        """
        start_time = time.time()
        logger.info(f"Building embedding table {self._schema.table_name} in {self._store.db_path} "
                    f"(dim={self._schema.dim})")
        records = parse_vector_file(stream, expected_dim=self._schema.dim)
        # a bad header or first line must not leave an empty table behind
        first = next(records, None)
        self._store.create_schema()
        if first is not None:
            records = _prepend(first, records)

        if self._channel_capacity > 0:
            with RecordChannel(records, capacity=self._channel_capacity) as channel:
                count = self._write_batches(channel)
        else:
            count = self._write_batches(records)

        self._store.create_index()
        logger.info(f"Stored {count} embeddings in {time.time() - start_time:.2f}s")
        return count

    def build_from_file(self, path: Union[str, Path]) -> int:
        with open(path, 'r', encoding='utf-8') as f:
            return self.build(f)

    def _write_batches(self, records: Iterable[WordPacket]) -> int:
        count = 0
        order = self._schema.byte_order
        for batch in _batched(records, self._batch_size):
            count += self._store.put_many((p.word, encode_vector(p.vector, order)) for p in batch)
            logger.debug(f"Committed batch of {len(batch)} embeddings ({count} total)")
        return count

    # ------------------------------------------------------------------ reads

    def _decode(self, word: str, data: bytes) -> np.ndarray:
        vec = decode_vector(data, self._schema.byte_order)
        if len(vec) != self._schema.dim:
            raise VectorDimensionMismatchException(
                "Stored vector length differs from the store dimension",
                provided_dim=len(vec), expected_dim=self._schema.dim, word=word)
        return vec

    def _check_query(self, query: Any) -> np.ndarray:
        vec = np.asarray(query, dtype=np.float64).ravel()
        if len(vec) != self._schema.dim:
            raise VectorDimensionMismatchException(
                "Query vector length differs from the store dimension",
                provided_dim=len(vec), expected_dim=self._schema.dim)
        return vec

    def embedding_vector(self, word: str) -> np.ndarray:
        """Return the embedding of ``word``; raises NoEmbeddingFoundError on a miss."""
        return self._decode(word, self._store.get(word))

    def embedding_vectors(self, words: Sequence[str]) -> Dict[str, np.ndarray]:
        """Batch lookup; any missing word raises NoEmbeddingFoundError."""
        return {word: self.embedding_vector(word) for word in words}

    def all_embeddings(self) -> Iterator[Tuple[str, np.ndarray]]:
        """Lazily iterate over every stored (word, vector)."""
        for word, data in self._store.scan_items():
            yield word, self._decode(word, data)

    def all_embedding_vectors(self) -> List[np.ndarray]:
        return [vec for _, vec in self.all_embeddings()]

    def most_similar_embedding_vector(self, query: Any) -> SimilarityResult:
        """The stored vector closest to ``query`` by cosine similarity, excluding ``query`` itself."""
        query = self._check_query(query)
        return most_similar(query, (vec for _, vec in self.all_embeddings()))

    def most_similar_word(self, query: Any) -> SimilarityResult:
        """Like ``most_similar_embedding_vector`` but the result also names the word."""
        query = self._check_query(query)
        return most_similar_item(query, self.all_embeddings())

    def multi_word_embedding_vector(self, words: Sequence[str]) -> np.ndarray:
        """Average of the embeddings of ``words``."""
        return average_words(words, self.embedding_vector)

    def count(self) -> int:
        return self._store.count()

    # ------------------------------------------------------------------ lifecycle

    def close(self) -> None:
        self._store.close()

    def __enter__(self) -> 'EmbeddingSession':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self._store.closed:
            self.close()
