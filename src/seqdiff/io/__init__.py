"""
Module for opening sequence files, transparently handling compression.
"""
from importlib import import_module
from io import IOBase
from pathlib import Path
from typing import Union, IO, Optional, BinaryIO
from sys import stdin

from seqdiff import SeqdiffWarning


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class SeqFileError(Exception):
    """Exception raised for errors in sequence file processing."""
    pass


class ParserError(Exception):
    """Exception raised for errors during parsing."""
    pass


class SeqFileWarning(SeqdiffWarning):
    """Warning category for sequence file issues."""
    pass


# Classes --------------------------------------------------------------------------------------------------------------
class Xopen:
    """
    Opens a path or passes through a handle in binary read mode, decompressing by magic bytes.

    Examples:
        >>> with Xopen('reference.fasta.gz') as handle:
        ...     handle.read(1)
        b'>'
    """
    _MAGIC = {
        b'\x1f\x8b': 'gzip',
        b'\x42\x5a': 'bz2',
        b'\xfd7zXZ\x00': 'lzma',
    }
    _MIN_N_BYTES = max(len(i) for i in _MAGIC.keys())

    def __init__(self, file: Union[str, Path, IO]):
        self.file = file
        self._handle: Optional[BinaryIO] = None
        self._close_on_exit = False

    def __enter__(self) -> BinaryIO:
        self._handle = self._open()
        return self._handle

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._close_on_exit and self._handle: self._handle.close()

    def _open(self) -> BinaryIO:
        if isinstance(self.file, IOBase): return self.file
        if str(self.file) in {'-', 'stdin'}: return stdin.buffer
        path = Path(self.file)
        if not path.is_file(): raise SeqFileError(f'No such file: {path}')
        self._close_on_exit = True
        if magic_pkg := self._detect_magic(path): return import_module(magic_pkg).open(path, mode='rb')
        return open(path, mode='rb')

    def _detect_magic(self, path: Path) -> Optional[str]:
        """Returns the name of the decompression module for the file, or None if it is uncompressed."""
        with open(path, 'rb') as f:
            start = f.read(self._MIN_N_BYTES)
        for magic, pkg in self._MAGIC.items():
            if start.startswith(magic): return pkg
        return None
