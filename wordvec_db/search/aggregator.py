from typing import Any, Callable, Sequence

import numpy as np

from wordvec_exception_model.exception import EmptyInputException, VectorDimensionMismatchException

Resolver = Callable[[str], Any]


def average_words(words: Sequence[str], resolver: Resolver) -> np.ndarray:
    """
    Build one vector for a phrase by averaging the vectors of its words.

    Words are resolved in order; the first missing word propagates the resolver's
    NoEmbeddingFoundError and nothing is returned. Repeated words weight the mean.

    Raises:
        EmptyInputException: if ``words`` is empty.
    """
    if len(words) == 0:
        raise EmptyInputException("Cannot average an empty list of words")

    total = None
    for word in words:
        vec = np.asarray(resolver(word), dtype=np.float64)
        if total is None:
            total = vec.copy()
            continue
        if vec.shape != total.shape:
            raise VectorDimensionMismatchException(
                "Word vectors have different lengths", len(vec), len(total), word=word)
        total += vec
    return total * (1.0 / len(words))
