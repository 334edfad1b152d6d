# scanner.py
import io
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Union

from oggscope.core import logger
from oggscope.services.inspect.errors import InvalidPage, OggInspectError, TruncatedInput
from oggscope.services.inspect.ogg import CAPTURE_PATTERN, HEADER_SIZE, PageHeader
from oggscope.services.inspect.segment_table import SegmentTable, read_exact, read_segment_table

log = logger.get_logger()

RESYNC_CHUNK_SIZE: int = 64 * 1024


class InvalidPagePolicy(Enum):
    ABORT = "abort"     # raise InvalidPage
    REPORT = "report"   # log, keep walking with the declared lengths
    RESYNC = "resync"   # byte-scan forward for the next capture pattern


@dataclass(frozen=True)
class Page:
    header: PageHeader
    offset: int                     # File offset of the capture pattern
    segment_table: SegmentTable

    @property
    def payload_offset(self) -> int:
        return self.offset + HEADER_SIZE + self.segment_table.segment_count

    @property
    def payload_length(self) -> int:
        return self.segment_table.payload_length

    @property
    def size(self) -> int:
        return HEADER_SIZE + self.segment_table.segment_count + self.payload_length

    @property
    def next_offset(self) -> int:
        return self.offset + self.size


class PageScanner:
    """Walks an Ogg file page by page using only the header-declared lengths.

    Payload bytes are skipped, never read. Every call to ``iter_pages`` (or
    ``iter``) starts again at offset 0.
    """

    def __init__(
        self,
        source: BinaryIO,
        total_length: Optional[int] = None,
        invalid_page_policy: InvalidPagePolicy = InvalidPagePolicy.ABORT,
    ) -> None:
        self._source = source
        self.total_length: int = total_length if total_length is not None else self._measure(source)
        self.invalid_page_policy = invalid_page_policy
        self.invalid_page_offsets: List[int] = []
        self.skipped_bytes: int = 0

    @staticmethod
    def _measure(source: BinaryIO) -> int:
        position = source.tell()
        total = source.seek(0, io.SEEK_END)
        source.seek(position)
        return total

    def __iter__(self) -> Iterator[PageHeader]:
        for page in self.iter_pages():
            yield page.header

    def iter_pages(self) -> Iterator[Page]:
        self.invalid_page_offsets = []
        self.skipped_bytes = 0
        cursor: int = 0

        while cursor < self.total_length:
            if self._is_trailing_garbage(cursor):
                return

            self._source.seek(cursor)
            header = PageHeader(read_exact(self._source, HEADER_SIZE, offset=cursor, what="page header bytes"))

            if not header.has_valid_capture_pattern:
                resumed_at = self._handle_invalid_page(cursor, header)
                if resumed_at is None:
                    return
                if resumed_at != cursor:
                    cursor = resumed_at
                    continue

            segment_table = read_segment_table(self._source, header.page_segments_count, offset=cursor + HEADER_SIZE)
            page = Page(header=header, offset=cursor, segment_table=segment_table)

            if page.next_offset > self.total_length:
                raise TruncatedInput(
                    f"Page at offset {cursor} declares {page.payload_length} payload bytes "
                    f"but only {self.total_length - page.payload_offset} remain",
                    offset=page.payload_offset,
                    expected=page.payload_length,
                    available=self.total_length - page.payload_offset,
                )

            log.debug(f"Page at offset {cursor}: serial {header.serial_number}, "
                      f"sequence {header.page_sequence_number_parsed}, payload {page.payload_length} bytes")
            cursor = page.next_offset
            yield page

    def _is_trailing_garbage(self, cursor: int) -> bool:
        """Under resync, a tail too short for a header that is not a page start ends the scan."""
        remaining = self.total_length - cursor
        if self.invalid_page_policy != InvalidPagePolicy.RESYNC or remaining >= HEADER_SIZE:
            return False

        self._source.seek(cursor)
        if self._source.read(len(CAPTURE_PATTERN)) == CAPTURE_PATTERN:
            return False

        self.invalid_page_offsets.append(cursor)
        self.skipped_bytes += remaining
        log.warning(f"Ignoring the last {remaining} bytes at offset {cursor}, too short for a page header.")
        return True

    def _handle_invalid_page(self, cursor: int, header: PageHeader) -> Optional[int]:
        """Apply the invalid page policy.

        Returns the offset to continue from (``cursor`` itself to keep walking
        with the declared lengths) or None when the scan has to stop.
        """
        pattern = bytes(header.capture_pattern)
        if self.invalid_page_policy == InvalidPagePolicy.ABORT:
            raise InvalidPage(
                f"Expected capture pattern {CAPTURE_PATTERN!r} at offset {cursor}, found {pattern!r}",
                offset=cursor,
                capture_pattern=pattern,
            )

        self.invalid_page_offsets.append(cursor)
        if self.invalid_page_policy == InvalidPagePolicy.REPORT:
            log.warning(f"Invalid capture pattern {pattern!r} at offset {cursor}, continuing with declared lengths.")
            return cursor

        next_offset = self._find_capture_pattern(cursor + 1)
        if next_offset is None:
            self.skipped_bytes += self.total_length - cursor
            log.warning(f"Invalid capture pattern at offset {cursor} and no further page found. "
                        f"Ignoring the last {self.total_length - cursor} bytes.")
            return None

        self.skipped_bytes += next_offset - cursor
        log.warning(f"Invalid capture pattern at offset {cursor}, resynchronized at offset {next_offset} "
                    f"({next_offset - cursor} bytes skipped).")
        return next_offset

    def _find_capture_pattern(self, start: int) -> Optional[int]:
        overlap = len(CAPTURE_PATTERN) - 1
        position = start
        while position < self.total_length:
            self._source.seek(position)
            chunk = self._source.read(min(RESYNC_CHUNK_SIZE, self.total_length - position))
            if not chunk:
                return None
            index = chunk.find(CAPTURE_PATTERN)
            if index != -1:
                return position + index
            if len(chunk) <= overlap:
                return None
            position += len(chunk) - overlap
        return None

    def read_payload(self, page: Page) -> bytes:
        """Read the payload bytes of a page found by this scanner."""
        self._source.seek(page.payload_offset)
        return read_exact(self._source, page.payload_length, offset=page.payload_offset, what="payload bytes")


@dataclass
class ScanResult:
    path: Path
    total_length: int = 0
    pages: List[Page] = field(default_factory=list)
    invalid_page_offsets: List[int] = field(default_factory=list)
    skipped_bytes: int = 0
    error: Optional[OggInspectError] = None     # Set when the scan stopped early

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def headers(self) -> List[PageHeader]:
        return [page.header for page in self.pages]

    def __repr__(self) -> str:
        return (f"ScanResult(path: {self.path}, pages: {len(self.pages)}, "
                f"total length: {self.total_length}, error: {self.error!r})")


def scan_file(path: Union[str, Path], invalid_page_policy: InvalidPagePolicy = InvalidPagePolicy.ABORT) -> ScanResult:
    """Scan a whole file and keep whatever was found before a failure.

    Inspection errors end the scan and are stored on the result together with
    the pages discovered up to that point. OS errors (missing file, permission)
    propagate.
    """
    result = ScanResult(path=Path(path))
    with open(path, 'rb') as f:
        scanner = PageScanner(f, invalid_page_policy=invalid_page_policy)
        result.total_length = scanner.total_length
        try:
            for page in scanner.iter_pages():
                result.pages.append(page)
        except OggInspectError as e:
            log.error(f"Scan of {path} stopped after {len(result.pages)} pages: {e}")
            result.error = e
        finally:
            result.invalid_page_offsets = list(scanner.invalid_page_offsets)
            result.skipped_bytes = scanner.skipped_bytes

    log.info(f"Scanned {len(result.pages)} pages from {path} ({result.total_length} bytes).")
    return result
