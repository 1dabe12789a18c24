from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Tuple


class EmbeddingStore(ABC):
    """
    Abstract key -> blob persistence for serialized embedding vectors.

    Words are unique keys. Blobs are opaque to the store; decoding and dimension
    checks belong to the caller.
    """

    @abstractmethod
    def create_schema(self) -> None:
        """Create the table holding the embeddings."""
        ...

    @abstractmethod
    def create_index(self) -> None:
        """Create the index used for point lookups by word."""
        ...

    @abstractmethod
    def put(self, word: str, data: bytes) -> None:
        """Store one word. Raises DuplicateWordException if the word exists."""
        ...

    @abstractmethod
    def put_many(self, items: Iterable[Tuple[str, bytes]]) -> int:
        """Store several words atomically and return how many were written."""
        ...

    @abstractmethod
    def get(self, word: str) -> bytes:
        """Return the blob of ``word``. Raises NoEmbeddingFoundError on a miss."""
        ...

    @abstractmethod
    def scan_all(self) -> Iterator[bytes]:
        """Iterate over every stored blob."""
        ...

    @abstractmethod
    def scan_items(self) -> Iterator[Tuple[str, bytes]]:
        """Iterate over every stored (word, blob) pair."""
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def close(self) -> None:
        ...
