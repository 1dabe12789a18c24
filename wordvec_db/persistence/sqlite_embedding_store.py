"""
SQLite-backed key -> blob store for serialized embedding vectors.

TABLE LAYOUT:
═════════════

    <table_name>  (default "fasttext")
    ┌──────────────────────┐
    │ word      TEXT UNIQUE│   key, point lookups through ind_<table>_word
    │ emb       BLOB       │   dim * 8 bytes, see wordvec_data_model.vector_codec
    │ checksum  TEXT       │   row_checksum(word, emb)
    └──────────────────────┘

BACKINGS:
═════════
• on-disk file:           SQLiteEmbeddingStore(path, schema)
• private in-memory db:   SQLiteEmbeddingStore(":memory:", schema)
• in-memory copy of disk: SQLiteEmbeddingStore.open_in_memory_copy(path, schema)
  The whole on-disk database is copied with the sqlite3 backup API, which makes
  point lookups and scans much faster at the price of loading time.

POLICIES:
═════════
• Duplicate words are rejected: the UNIQUE constraint violation surfaces as
  DuplicateWordException and the current transaction is rolled back.
• A missing word raises NoEmbeddingFoundError.
• Every read validates the row checksum (ChecksumValidationFailureError).
• Any other sqlite3.Error is passed through unchanged.

THREADING:
══════════
One store owns one connection, created with check_same_thread=True. A store must
only be used from the thread that opened it; other threads open their own store
over the same file.
"""
import logging
import sqlite3
from pathlib import Path
from typing import Iterable, Iterator, Tuple, Union

from wordvec_data_model.checksum_util import row_checksum
from wordvec_data_model.index_packets import EmbeddingSchema
from wordvec_db.core.interface.embedding_store_interface import EmbeddingStore
from wordvec_exception_model.exception import NoEmbeddingFoundError, ChecksumValidationFailureError, \
    DuplicateWordException, StorageFailureException

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class SQLiteEmbeddingStore(EmbeddingStore):
    """
    SQLite implementation of EmbeddingStore.
    """

    def __init__(self, db_path: Union[str, Path], schema: EmbeddingSchema):
        self._db_path = str(db_path)
        self._schema = schema
        self._table = schema.table_name
        self._conn = self._connect(self._db_path)

    @staticmethod
    def _connect(db_path: str) -> sqlite3.Connection:
        conn = sqlite3.connect(db_path)
        if db_path != MEMORY_PATH:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    @classmethod
    def open_in_memory_copy(cls, db_path: Union[str, Path], schema: EmbeddingSchema) -> 'SQLiteEmbeddingStore':
        """Load an existing on-disk database into a private in-memory database."""
        path = Path(db_path)
        if not path.exists():
            raise FileNotFoundError(f"Embedding database not found: {path}")

        store = cls(MEMORY_PATH, schema)
        disk = sqlite3.connect(str(path))
        try:
            disk.backup(store._conn)
        finally:
            disk.close()

        if not store.has_schema():
            store.close()
            raise StorageFailureException(f"Table {schema.table_name} not found in {path}")
        store.create_index()
        logger.info(f"Loaded {path} into memory ({store.count()} embeddings)")
        return store

    @property
    def schema(self) -> EmbeddingSchema:
        return self._schema

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def closed(self) -> bool:
        return self._conn is None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageFailureException(f"Embedding store {self._db_path} is closed")
        return self._conn

    def has_schema(self) -> bool:
        cur = self._connection().execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (self._table,))
        return cur.fetchone() is not None

    def create_schema(self) -> None:
        conn = self._connection()
        with conn:
            conn.execute(f"""
                CREATE TABLE {self._table} (
                    word TEXT UNIQUE,
                    emb BLOB NOT NULL,
                    checksum TEXT NOT NULL
                )
            """)

    def create_index(self) -> None:
        conn = self._connection()
        with conn:
            conn.execute(f"CREATE INDEX IF NOT EXISTS ind_{self._table}_word ON {self._table}(word)")

    def _insert(self, conn: sqlite3.Connection, word: str, data: bytes) -> None:
        checksum = row_checksum(word, data, self._schema.checksum_algorithm)
        try:
            conn.execute(
                f"INSERT INTO {self._table}(word, emb, checksum) VALUES (?, ?, ?)",
                (word, data, checksum)
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateWordException("Word is already stored", word=word, cause=e) from e

    def put(self, word: str, data: bytes) -> None:
        conn = self._connection()
        with conn:
            self._insert(conn, word, data)

    def put_many(self, items: Iterable[Tuple[str, bytes]]) -> int:
        conn = self._connection()
        written = 0
        with conn:
            for word, data in items:
                self._insert(conn, word, data)
                written += 1
        return written

    def _validate(self, word: str, data: bytes, checksum: str) -> bytes:
        if row_checksum(word, data, self._schema.checksum_algorithm) != checksum:
            raise ChecksumValidationFailureError("Stored embedding failed checksum validation", word=word)
        return data

    def get(self, word: str) -> bytes:
        cur = self._connection().execute(
            f"SELECT emb, checksum FROM {self._table} WHERE word = ?", (word,))
        row = cur.fetchone()
        if row is None:
            raise NoEmbeddingFoundError("No embedding found for the given word", word=word)
        return self._validate(word, bytes(row[0]), row[1])

    def scan_items(self) -> Iterator[Tuple[str, bytes]]:
        cur = self._connection().execute(f"SELECT word, emb, checksum FROM {self._table} ORDER BY rowid")
        try:
            for word, data, checksum in cur:
                yield word, self._validate(word, bytes(data), checksum)
        finally:
            cur.close()

    def scan_all(self) -> Iterator[bytes]:
        for _, data in self.scan_items():
            yield data

    def count(self) -> int:
        cur = self._connection().execute(f"SELECT COUNT(*) FROM {self._table}")
        return cur.fetchone()[0]

    def close(self) -> None:
        if self._conn is None:
            logger.warning(f"Embedding store {self._db_path} closed twice")
            return
        self._conn.close()
        self._conn = None

    def __enter__(self) -> 'SQLiteEmbeddingStore':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._conn is not None:
            self.close()
