# https://datatracker.ietf.org/doc/html/rfc3533#section-6
# Layout of the fixed Ogg page header (all multi-byte fields little-endian):
#
#  Offset | Size | Field
# --------+------+------------------------------------------------
#       0 |    4 | capture_pattern "OggS"
#       4 |    1 | stream_structure_version
#       5 |    1 | header_type_flag (0x01 continued, 0x02 bos, 0x04 eos)
#       6 |    8 | granule_position (-1: no packet finishes on this page)
#      14 |    4 | bitstream_serial_number
#      18 |    4 | page_sequence_number
#      22 |    4 | CRC_checksum
#      26 |    1 | number_page_segments (N)
#      27 |    N | segment_table (lacing values)
#    27+N |  sum | page payload
#
# header_size = 27 + N
# page_size   = header_size + sum(segment_table)

from dataclasses import dataclass
from typing import List, Tuple

CAPTURE_PATTERN: bytes = b'OggS'
HEADER_SIZE: int = 27

CAPTURE_PATTERN_RANGE: Tuple[int, int] = (0, 4)
VERSION_RANGE: Tuple[int, int] = (4, 5)
HEADER_TYPE_RANGE: Tuple[int, int] = (5, 6)
GRANULE_POSITION_RANGE: Tuple[int, int] = (6, 14)
SERIAL_NUMBER_RANGE: Tuple[int, int] = (14, 18)
SEQUENCE_NUMBER_RANGE: Tuple[int, int] = (18, 22)
CHECKSUM_RANGE: Tuple[int, int] = (22, 26)
PAGE_SEGMENTS_RANGE: Tuple[int, int] = (26, 27)

FLAG_CONTINUATION: int = 0x01
FLAG_BEGINNING_OF_STREAM: int = 0x02
FLAG_END_OF_STREAM: int = 0x04

FIELD_RANGES: List[Tuple[str, Tuple[int, int]]] = [
    ("capture_pattern", CAPTURE_PATTERN_RANGE),
    ("version", VERSION_RANGE),
    ("header_type", HEADER_TYPE_RANGE),
    ("granule_position", GRANULE_POSITION_RANGE),
    ("bitstream_serial_number", SERIAL_NUMBER_RANGE),
    ("page_sequence_number", SEQUENCE_NUMBER_RANGE),
    ("checksum", CHECKSUM_RANGE),
    ("page_segments", PAGE_SEGMENTS_RANGE),
]


@dataclass(frozen=True)
class PageHeader:
    """The 27 fixed bytes at the start of an Ogg page.

    Only the buffer length is checked here. Whether the bytes actually start
    with ``OggS`` is left to the caller (see ``has_valid_capture_pattern``).
    Span accessors return ``memoryview`` slices of ``raw_data``, parsed
    accessors return ints.
    """
    raw_data: bytes

    def __post_init__(self) -> None:
        if len(self.raw_data) != HEADER_SIZE:
            raise ValueError(f"Page header must be {HEADER_SIZE} bytes, got {len(self.raw_data)}.")
        object.__setattr__(self, 'raw_data', bytes(self.raw_data))

    def _span(self, byte_range: Tuple[int, int]) -> memoryview:
        start, end = byte_range
        return memoryview(self.raw_data)[start:end]

    # ---------------- raw field spans ----------------

    @property
    def capture_pattern(self) -> memoryview:
        return self._span(CAPTURE_PATTERN_RANGE)

    @property
    def version(self) -> memoryview:
        return self._span(VERSION_RANGE)

    @property
    def header_type(self) -> memoryview:
        return self._span(HEADER_TYPE_RANGE)

    @property
    def granule_position(self) -> memoryview:
        return self._span(GRANULE_POSITION_RANGE)

    @property
    def bitstream_serial_number(self) -> memoryview:
        return self._span(SERIAL_NUMBER_RANGE)

    @property
    def page_sequence_number(self) -> memoryview:
        return self._span(SEQUENCE_NUMBER_RANGE)

    @property
    def checksum(self) -> memoryview:
        return self._span(CHECKSUM_RANGE)

    @property
    def page_segments(self) -> memoryview:
        return self._span(PAGE_SEGMENTS_RANGE)

    # ---------------- parsed values ----------------

    @property
    def version_parsed(self) -> int:
        return self.raw_data[VERSION_RANGE[0]]

    @property
    def header_type_parsed(self) -> int:
        return self.raw_data[HEADER_TYPE_RANGE[0]]

    @property
    def granule_position_parsed(self) -> int:
        return int.from_bytes(self.granule_position, 'little', signed=True)

    @property
    def serial_number(self) -> int:
        return int.from_bytes(self.bitstream_serial_number, 'little')

    @property
    def page_sequence_number_parsed(self) -> int:
        return int.from_bytes(self.page_sequence_number, 'little')

    @property
    def checksum_parsed(self) -> int:
        return int.from_bytes(self.checksum, 'little')

    @property
    def page_segments_count(self) -> int:
        return self.raw_data[PAGE_SEGMENTS_RANGE[0]]

    @property
    def has_valid_capture_pattern(self) -> bool:
        return self.capture_pattern == CAPTURE_PATTERN

    @property
    def is_continuation(self) -> bool:
        return bool(self.header_type_parsed & FLAG_CONTINUATION)

    @property
    def is_beginning_of_stream(self) -> bool:
        return bool(self.header_type_parsed & FLAG_BEGINNING_OF_STREAM)

    @property
    def is_end_of_stream(self) -> bool:
        return bool(self.header_type_parsed & FLAG_END_OF_STREAM)

    # ---------------- presentation helpers ----------------

    def display_text(self) -> str:
        """One-line summary used by page listings."""
        stream_serial: str = self.bitstream_serial_number.hex()
        stream_page: int = self.page_sequence_number_parsed
        return f"Page Header - stream serial: {stream_serial} - page: {stream_page}"

    def field_bytes(self) -> List[Tuple[str, bytes]]:
        """Raw bytes of every header field in layout order."""
        return [(name, bytes(self._span(byte_range))) for name, byte_range in FIELD_RANGES]

    def __repr__(self) -> str:
        return (f"PageHeader({{'capture_pattern': {bytes(self.capture_pattern)!r}, "
                f"'version': {self.version_parsed}, "
                f"'header_type': {self.header_type_parsed}, "
                f"'granule_position': {self.granule_position_parsed}, "
                f"'serial_number': {self.serial_number}, "
                f"'page_sequence_number': {self.page_sequence_number_parsed}, "
                f"'CRC_checksum': {self.checksum_parsed}, "
                f"'segment_count': {self.page_segments_count}}})")
