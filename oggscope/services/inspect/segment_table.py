# segment_table.py
from dataclasses import dataclass
from typing import BinaryIO, List, Optional

import numpy as np

from oggscope.services.inspect.errors import TruncatedInput

MAX_LACING_VALUE: int = 255


def read_exact(source: BinaryIO, n: int, offset: Optional[int] = None, what: str = "bytes") -> bytes:
    """
    Read exactly n bytes from the current position of source.
    Raises TruncatedInput if fewer than n bytes are available.
    """
    data = source.read(n)
    if len(data) != n:
        where = f" at offset {offset}" if offset is not None else ""
        raise TruncatedInput(
            f"Expected {n} {what}{where}, got {len(data)} bytes",
            offset=offset,
            expected=n,
            available=len(data),
        )
    return data


@dataclass(frozen=True)
class SegmentTable:
    raw_data: bytes     # Lacing values as read from the file, one byte each

    @property
    def lacing_values(self) -> np.ndarray:
        return np.frombuffer(self.raw_data, dtype=np.uint8)

    @property
    def segment_count(self) -> int:
        return len(self.raw_data)

    @property
    def payload_length(self) -> int:
        # Every lacing value counts, including the 255 continuation entries.
        return int(self.lacing_values.sum(dtype=np.uint32))

    @property
    def ends_with_open_packet(self) -> bool:
        """True if the last packet on this page continues on the next page."""
        return self.segment_count > 0 and self.raw_data[-1] == MAX_LACING_VALUE

    def packet_lengths(self) -> List[int]:
        """
        Byte lengths of the packet pieces laid out on this page.

        A lacing value below 255 closes a piece. A trailing run of 255 values
        yields a final piece that continues on the next page.
        """
        lengths: List[int] = []
        current: int = 0
        for value in self.raw_data:
            current += value
            if value < MAX_LACING_VALUE:
                lengths.append(current)
                current = 0
        if self.ends_with_open_packet:
            lengths.append(current)
        return lengths


def read_segment_table(source: BinaryIO, segment_count: int, offset: Optional[int] = None) -> SegmentTable:
    """Read the N lacing values that follow a page header.

    ``source`` must be positioned right after the 27 header bytes. A count of
    zero is valid and gives an empty table with a zero payload length.
    """
    if not 0 <= segment_count <= MAX_LACING_VALUE:
        raise ValueError(f"Segment count must be between 0 and {MAX_LACING_VALUE}, got {segment_count}")
    if segment_count == 0:
        return SegmentTable(b'')
    return SegmentTable(read_exact(source, segment_count, offset=offset, what="segment table bytes"))
