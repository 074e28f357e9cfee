"""
FASTA parsing.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Generator, BinaryIO, Union
from warnings import warn

from seqdiff.io import Xopen, ParserError, SeqFileError, SeqFileWarning


# Classes --------------------------------------------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Record:
    """
    A named sequence.

    Attributes:
        id: The first word of the header line.
        description: The rest of the header line (may be empty).
        seq: The sequence with line breaks removed.
    """
    id: bytes
    description: bytes
    seq: bytes

    def __len__(self): return len(self.seq)


class FastaReader:
    """
    Reader for FASTA format files.

    Sequences may span multiple lines; whitespace inside them is removed.

    Examples:
        >>> with open("genome.fasta", "rb") as f:
        ...     for record in FastaReader(f):
        ...         print(record.id)
    """
    _CHUNK_SIZE = 65536
    _WHITESPACE = b' \t\r\n'
    __slots__ = ('_handle',)

    def __init__(self, handle: BinaryIO):
        self._handle = handle

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> list[Record]:
        """
        Reads every record of a plain or compressed FASTA file.

        Warns:
            SeqFileWarning: If the file contains no records.

        Raises:
            SeqFileError: If the file does not exist.
            ParserError: If the content is not FASTA.
        """
        with Xopen(path) as handle:
            records = list(cls(handle))
        if not records: warn(f'No FASTA records found in {path}', SeqFileWarning)
        return records

    def __iter__(self) -> Generator[Record, None, None]:
        """
        Iterates over FASTA records.

        Yields:
            Record objects.
        """
        for header, seq_parts in self._read_entries():
            yield self._make_record(header, seq_parts)

    def _read_entries(self):
        """Internal generator that yields (header, seq_parts_list)."""
        read = self._handle.read
        buf = b""
        header = None
        seq_parts = []

        while True:
            chunk = read(self._CHUNK_SIZE)
            if isinstance(chunk, str): raise SeqFileError('FASTA handles must be opened in binary mode')
            if not chunk:
                # A trailing header without a newline is a record with an empty sequence
                if header is None and buf.startswith(b'>'): header, buf = buf[1:].rstrip(), b""
                if header is not None:
                    if buf: seq_parts.append(buf)
                    yield header, seq_parts
                break

            buf += chunk
            pos = 0

            while True:
                gt_pos = buf.find(b'>', pos)

                if gt_pos == -1:
                    if header is not None:
                        seq_parts.append(buf[pos:])
                    elif buf[pos:].strip(self._WHITESPACE):
                        raise ParserError(f'Sequence data before the first FASTA header: {buf[pos:pos + 50]!r}')
                    buf = b""
                    break

                if header is not None:
                    seq_parts.append(buf[pos:gt_pos])
                    yield header, seq_parts
                    seq_parts = []
                    header = None
                elif buf[pos:gt_pos].strip(self._WHITESPACE):
                    raise ParserError(f'Sequence data before the first FASTA header: {buf[pos:gt_pos][:50]!r}')

                nl_pos = buf.find(b'\n', gt_pos)
                if nl_pos == -1:
                    buf = buf[gt_pos:]
                    break

                header = buf[gt_pos + 1:nl_pos].rstrip()
                pos = nl_pos + 1

    def _make_record(self, header: bytes, seq_parts: list[bytes]) -> Record:
        name, _, desc = header.partition(b' ')
        if not name: raise ParserError(f'FASTA header without an identifier: {header!r}')
        return Record(name, desc.strip(), b"".join(seq_parts).translate(None, self._WHITESPACE))
