"""
Streaming parser for word-vector text files (fastText ``.vec`` format).

    2 3                     <- header: <vocab_size> <dim>, yields no record
    cat 1.0 0.0 0.0         <- <word> <dim space-separated floats>
    dog 0.0 1.0 0.0

Records are produced lazily, one line at a time, so arbitrarily large files never
have to be held in memory. Any malformed line stops the generator with a typed
exception; no record after the bad line is ever produced.

Policies:
    * completely empty lines are skipped,
    * an empty word token (line starting with a space) becomes ``" "``,
    * a line whose token count differs from the header dimension raises
      ``VectorDimensionMismatchException``,
    * a token that is not a plain decimal float (digits, optional fraction and
      exponent, or inf/nan) raises ``InvalidDataException``,
    * bytes that are not valid UTF-8 raise ``InvalidDataException``.
"""
import logging
import re
from typing import IO, Iterator, Optional, Tuple, Union

import numpy as np

from wordvec_data_model.index_packets import WordPacket
from wordvec_exception_model.exception import InvalidDataException, VectorDimensionMismatchException

logger = logging.getLogger(__name__)

_FLOAT_TOKEN = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)", re.IGNORECASE | re.ASCII)


def _iter_lines(stream: IO) -> Iterator[Tuple[int, str]]:
    """Yield (line_number, text) with the line terminator removed."""
    for line_no, raw in enumerate(stream, start=1):
        if isinstance(raw, bytes):
            try:
                raw = raw.decode('utf-8')
            except UnicodeDecodeError as e:
                raise InvalidDataException("Line is not valid UTF-8", line=line_no, cause=e)
        yield line_no, raw.rstrip('\r\n')


def _parse_float(token: str) -> float:
    # float() alone would also take "1_000", padded or non-ASCII digits
    if _FLOAT_TOKEN.fullmatch(token) is None:
        raise ValueError(f"could not convert string to float: {token!r}")
    return float(token)


def parse_header(line: str) -> Tuple[Optional[int], int]:
    """
    Parse the ``<vocab_size> <dim>`` header.

    Returns:
        (vocab_size or None if it is not an integer, dim)

    Raises:
        InvalidDataException: if the dimension is missing, not an integer or not positive.
    """
    parts = line.split(" ")
    if len(parts) < 2:
        raise InvalidDataException("Header must be '<vocab_size> <dim>'", line=1)
    try:
        dim = int(parts[1])
    except ValueError as e:
        raise InvalidDataException("Header dimension is not an integer", line=1, cause=e)
    if dim <= 0:
        raise InvalidDataException(f"Header dimension must be positive, got {dim}", line=1)
    try:
        vocab_size = int(parts[0])
    except ValueError:
        vocab_size = None
    return vocab_size, dim


def parse_record(line: str, dim: int, line_no: int) -> WordPacket:
    """Parse one ``<word> <floats...>`` line into a WordPacket."""
    word, sep, rest = line.partition(" ")
    if word == "":
        word = " "
    tokens = rest.strip().split(" ") if sep else []
    if len(tokens) != dim:
        raise VectorDimensionMismatchException(
            "Embedding vector size does not match header",
            provided_dim=len(tokens), expected_dim=dim, line=line_no, word=word)

    vector = np.empty(dim, dtype=np.float64)
    for i, token in enumerate(tokens):
        try:
            vector[i] = _parse_float(token)
        except ValueError as e:
            raise InvalidDataException(f"Invalid float token {token!r}", line=line_no, word=word, cause=e)
    return WordPacket(word=word, vector=vector)


def parse_vector_file(stream: Union[IO[str], IO[bytes]], expected_dim: Optional[int] = None) -> Iterator[WordPacket]:
    """
    Lazily parse a word-vector file.

    Args:
        stream: Text or binary stream (binary is decoded as UTF-8).
        expected_dim: If given, the header dimension must equal it.

    Yields:
        WordPacket per record line, in file order.

    Raises:
        InvalidDataException: malformed header or float token.
        VectorDimensionMismatchException: header differs from ``expected_dim``, or a
            line has the wrong number of floats.
    """
    lines = _iter_lines(stream)
    header = next(lines, None)
    if header is None:
        logger.debug("Vector file is empty")
        return

    vocab_size, dim = parse_header(header[1])
    if expected_dim is not None and dim != expected_dim:
        raise VectorDimensionMismatchException(
            "Vector file dimension does not match the store",
            provided_dim=dim, expected_dim=expected_dim, line=1)
    logger.debug(f"Vector file header: vocab_size={vocab_size}, dim={dim}")

    for line_no, line in lines:
        if line == "":
            continue
        yield parse_record(line, dim, line_no)
