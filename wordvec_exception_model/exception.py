class NoEmbeddingFoundError(Exception):
    """
    Exception raised when a requested word has no stored embedding vector.

    This is the typed not-found signal of the store: batch operations use it to
    tell "absent" apart from "store unavailable", which surfaces as a storage error.

    Attributes:
        word -- the word that was looked up
        message -- explanation of the error
    """

    def __init__(self, message, word=None):
        self.word = word
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.word is not None:
            return f"{self.message} (word={self.word!r})"
        return self.message


class ChecksumValidationFailureError(Exception):
    """
    Exception raised when a stored row fails checksum validation.
    """

    def __init__(self, message, word=None):
        self.word = word
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.word is not None:
            return f"{self.message} (word={self.word!r})"
        return self.message


class MalformedEncodingException(Exception):
    """
    Exception raised when a serialized vector cannot be decoded because its
    byte length is not a multiple of the float width.
    """

    def __init__(self, message, length=None):
        self.length = length
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.length is not None:
            return f"{self.message} (length={self.length})"
        return self.message


class InvalidDataException(Exception):
    """
    Exception raised when a line of a vector file cannot be parsed.
    """
    def __init__(self, message, line=None, word=None, cause: Exception = None):
        self.line = line
        self.word = word
        self.message = message
        self.cause = cause
        super().__init__(self.message)

    def __str__(self):
        details = []
        if self.line is not None:
            details.append(f"line={self.line}")
        if self.word is not None:
            details.append(f"word={self.word!r}")
        if self.cause is not None:
            details.append(f"cause={self.cause}")

        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class VectorDimensionMismatchException(Exception):
    """
    Exception raised when the length of a vector doesn't match the configured
    dimension. During ingestion it is fatal and carries the offending line.
    """

    def __init__(self, message, provided_dim=None, expected_dim=None, line=None, word=None):
        self.provided_dim = provided_dim
        self.expected_dim = expected_dim
        self.line = line
        self.word = word
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        details = []
        if self.provided_dim is not None:
            details.append(f"provided_dim={self.provided_dim}")
        if self.expected_dim is not None:
            details.append(f"expected_dim={self.expected_dim}")
        if self.line is not None:
            details.append(f"line={self.line}")
        if self.word is not None:
            details.append(f"word={self.word!r}")

        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class NullOrZeroVectorException(Exception):
    """
    Exception raised when a zero-magnitude (or empty) vector takes part in a
    cosine similarity computation.
    """

    def __init__(self, message, word=None):
        self.word = word
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.word is not None:
            return f"{self.message} (word={self.word!r})"
        return self.message


class EmptyInputException(Exception):
    """
    Exception raised when an aggregation is requested over zero words.
    """

    def __init__(self, message):
        self.message = message
        super().__init__(self.message)


class DuplicateWordException(Exception):
    """
    Exception raised when ingestion tries to store a word that is already present.
    """

    def __init__(self, message, word=None, cause: Exception = None):
        self.word = word
        self.message = message
        self.cause = cause
        super().__init__(self.message)

    def __str__(self):
        details = []
        if self.word is not None:
            details.append(f"word={self.word!r}")
        if self.cause is not None:
            details.append(f"cause={self.cause}")

        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class StorageFailureException(Exception):
    """
    Exception raised when the embedding store is not usable: the session was
    closed, or the embeddings table does not exist.
    """
    def __init__(self, message, cause: Exception = None):
        self.message = message
        self.cause = cause
        super().__init__(self.message)

    def __str__(self):
        if self.cause is not None:
            return f"{self.message} (cause={self.cause})"
        return self.message
