"""
Module for coercing sequence-like inputs into the byte arrays the alignment kernels consume
"""
from typing import Union

import numpy as np


# Types ----------------------------------------------------------------------------------------------------------------
SeqLike = Union[bytes, bytearray, memoryview, str, np.ndarray]


# Exceptions -----------------------------------------------------------------------------------------------------------
class SeqError(TypeError): pass


# Functions ------------------------------------------------------------------------------------------------------------
def as_symbols(seq: SeqLike) -> np.ndarray:
    """
    Returns a read-only ``uint8`` view of a sequence.

    Bytes-like inputs are wrapped without copying; strings are ASCII encoded and integer arrays are
    cast. Symbols are treated as opaque bytes, no alphabet is enforced.

    Args:
        seq: The sequence as bytes, str or a 1-D integer array.

    Returns:
        A 1-D, non-writeable ``np.uint8`` array.

    Raises:
        SeqError: If the input cannot be interpreted as a 1-D byte sequence, or an integer array holds
            values outside 0..255.

    Examples:
        >>> as_symbols(b'ACGT')
        array([65, 67, 71, 84], dtype=uint8)
    """
    if isinstance(seq, np.ndarray):
        if seq.ndim != 1: raise SeqError(f'Expected a 1-D array, got shape {seq.shape}')
        if seq.dtype != np.uint8:
            if not np.issubdtype(seq.dtype, np.integer): raise SeqError(f'Cannot use {seq.dtype} as symbols')
            if seq.size and (seq.min() < 0 or seq.max() > 255):
                raise SeqError(f'Symbol values must be in 0..255, got {seq.min()}..{seq.max()}')
            seq = seq.astype(np.uint8)
        arr = seq.view()
    elif isinstance(seq, str):
        try: arr = np.frombuffer(seq.encode('ascii'), dtype=np.uint8)
        except UnicodeEncodeError as e: raise SeqError(f'Sequence is not ASCII: {e}') from e
    elif isinstance(seq, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(seq, dtype=np.uint8)
    else:
        raise SeqError(f'Cannot interpret {type(seq).__name__} as a sequence')
    arr.flags.writeable = False
    return arr


def as_bytes(seq: SeqLike) -> bytes:
    """Returns the sequence as immutable bytes."""
    if isinstance(seq, bytes): return seq
    return as_symbols(seq).tobytes()
