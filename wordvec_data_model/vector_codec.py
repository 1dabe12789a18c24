"""
Binary codec for embedding vectors.

A vector of ``dim`` float64 values is stored as ``dim * 8`` bytes: every value
is written as its IEEE-754 64-bit pattern in one fixed byte order, in vector
order, with no header and no length prefix. The length is implied by ``dim``.

    [1.0, -2.5]  --encode(BIG)-->  3f f0 00 00 00 00 00 00  c0 04 00 00 00 00 00 00
"""
from enum import Enum
from typing import Any, Union

import numpy as np

from wordvec_exception_model.exception import MalformedEncodingException

FLOAT_SIZE: int = 8


class ByteOrder(str, Enum):
    """Byte orders supported for serialized vectors."""
    BIG = "big"
    LITTLE = "little"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype('>f8') if self is ByteOrder.BIG else np.dtype('<f8')


DEFAULT_BYTE_ORDER = ByteOrder.BIG


def _resolve_byte_order(byte_order: Union[str, ByteOrder]) -> ByteOrder:
    if isinstance(byte_order, ByteOrder):
        return byte_order
    return ByteOrder(byte_order.lower())


def encode_vector(vector: Any, byte_order: Union[str, ByteOrder] = DEFAULT_BYTE_ORDER) -> bytes:
    """
    Serialize a 1-D sequence of floats into bytes.

    Args:
        vector: numpy array or any sequence of numbers.
        byte_order: ``ByteOrder`` or its string value.

    Returns:
        ``8 * len(vector)`` bytes.
    """
    order = _resolve_byte_order(byte_order)
    arr = np.asarray(vector, dtype=np.float64).ravel()
    return arr.astype(order.dtype, copy=False).tobytes()


def decode_vector(data: bytes, byte_order: Union[str, ByteOrder] = DEFAULT_BYTE_ORDER) -> np.ndarray:
    """
    Reconstruct a float64 vector from bytes produced by ``encode_vector``.

    The returned array is a writable copy in native byte order; it never shares
    memory with ``data``.

    Raises:
        MalformedEncodingException: if ``len(data)`` is not a multiple of 8.
    """
    order = _resolve_byte_order(byte_order)
    if len(data) % FLOAT_SIZE != 0:
        raise MalformedEncodingException(
            f"Serialized vector length must be a multiple of {FLOAT_SIZE}", len(data))
    return np.frombuffer(data, dtype=order.dtype).astype(np.float64)
