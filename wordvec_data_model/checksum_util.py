import hashlib
import zlib
from typing import Dict, Union, List, Callable

# Type for checksum function: takes bytes -> hex string
ChecksumFunc = Callable[[bytes], str]


# Predefined checksum functions
_PREDEFINED_CHECKSUMS: Dict[str, ChecksumFunc] = {
    'crc32': lambda b: format(zlib.crc32(b) & 0xFFFFFFFF, '08x'),
    'md5': lambda b: hashlib.md5(b).hexdigest(),
    'sha1': lambda b: hashlib.sha1(b).hexdigest(),
    'sha256': lambda b: hashlib.sha256(b).hexdigest(),
}


def get_checksum_func(
    algorithm: Union[str, ChecksumFunc]
) -> ChecksumFunc:
    """
    Resolve an algorithm name or accept a custom function.
    """
    if callable(algorithm):
        return algorithm
    alg = algorithm.lower()
    if alg in _PREDEFINED_CHECKSUMS:
        return _PREDEFINED_CHECKSUMS[alg]
    # fallback to hashlib
    try:
        hashlib.new(alg)
    except ValueError:
        raise ValueError(f"Unsupported checksum algorithm: {algorithm}")

    def _fn(b: bytes, name=alg):
        h = hashlib.new(name)
        h.update(b)
        return h.hexdigest()
    return _fn


def _concat_bytes(components: List[bytes]) -> bytes:
    """
    Concatenate multiple byte components deterministically.
    """
    return b"".join(components)


def row_checksum(word: str, data: bytes, algorithm: Union[str, ChecksumFunc] = 'crc32') -> str:
    """Checksum of one stored (word, serialized vector) row."""
    func = get_checksum_func(algorithm)
    return func(_concat_bytes([word.encode('utf-8'), b"\x00", data]))
