"""Data classes exchanged between the parser, the store and the search layer."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

from wordvec_data_model.vector_codec import ByteOrder, DEFAULT_BYTE_ORDER

# Define a Vector type
Vector = np.ndarray

_TABLE_NAME_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


@dataclass
class WordPacket:
    """Container storing one word and its embedding vector.

    Attributes:
        word: The word token. Never empty; an empty token is stored as ``" "``.
        vector: float64 numpy array of length ``dim``.
    """
    word: str
    vector: Vector

    def __post_init__(self):
        if self.word == "":
            self.word = " "

    def __eq__(self, other):
        if not isinstance(other, type(self)):
            return False
        return self.word == other.word and np.array_equal(self.vector, other.vector)


@dataclass
class EmbeddingSchema:
    """
    Configuration carried by one embedding store.

    Attributes:
        dim (int): The dimensionality of every vector in the store.
        byte_order (ByteOrder): Byte order of serialized vectors.
        table_name (str): SQLite table holding the embeddings.
        checksum_algorithm (str): Algorithm used for per-row checksums.
    """
    dim: int = 300
    byte_order: ByteOrder = DEFAULT_BYTE_ORDER
    table_name: str = 'fasttext'
    checksum_algorithm: str = 'crc32'

    def __post_init__(self):
        if self.dim <= 0:
            raise ValueError(f"Dimension must be positive, got {self.dim}")
        self.byte_order = ByteOrder(self.byte_order)
        # the table name is interpolated into SQL statements
        if not _TABLE_NAME_PATTERN.match(self.table_name):
            raise ValueError(f"Invalid table name: {self.table_name!r}")

    @property
    def encoded_size(self) -> int:
        return self.dim * 8

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dim': self.dim,
            'byte_order': self.byte_order.value,
            'table_name': self.table_name,
            'checksum_algorithm': self.checksum_algorithm,
        }


@dataclass
class SimilarityResult:
    """
    Outcome of a nearest-neighbour scan.

    Attributes:
        vector: The best matching vector, or None when nothing qualified.
        score: Cosine similarity of the match, 0.0 when nothing qualified.
        found: Whether a match was found.
        word: The matching word when the scan ran over labelled items.
    """
    vector: Optional[Vector] = None
    score: float = 0.0
    found: bool = False
    word: Optional[str] = None

    @classmethod
    def not_found(cls) -> 'SimilarityResult':
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'found': self.found,
            'word': self.word,
            'score': self.score,
            'vector': self.vector.tolist() if self.vector is not None else None,
        }
