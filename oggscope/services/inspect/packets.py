# packets.py
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, Optional

from oggscope.core import logger
from oggscope.services.inspect.scanner import Page, PageScanner
from oggscope.services.inspect.segment_table import MAX_LACING_VALUE

log = logger.get_logger()


@dataclass(frozen=True)
class Packet:
    data: bytes                     # Reassembled packet bytes
    serial_number: int              # Logical bitstream the packet belongs to
    page_sequence_number: int       # Sequence number of the page the packet starts on
    granule_position: int           # Granule position of the page the packet ends on
    first_in_stream: bool = False   # First packet of its logical bitstream
    last_in_stream: bool = False    # Last packet on a page flagged end-of-stream

    def __repr__(self) -> str:
        return (f"Packet(serial: {self.serial_number}, page: {self.page_sequence_number}, "
                f"granule: {self.granule_position}, length: {len(self.data)})")


@dataclass
class _PendingPacket:
    data: bytearray = field(default_factory=bytearray)
    page_sequence_number: int = 0


class PacketAssembler:
    """Joins page payload segments back into packets, per logical bitstream.

    Pages must be pushed in file order. A packet whose last lacing value on a
    page is 255 stays pending until a continuation page of the same serial
    number completes it.
    """

    def __init__(self) -> None:
        self._pending: Dict[int, _PendingPacket] = {}
        self._seen_serials: set[int] = set()

    def push(self, page: Page, payload: bytes) -> List[Packet]:
        header = page.header
        serial = header.serial_number
        sequence = header.page_sequence_number_parsed
        packets: List[Packet] = []

        if page.segment_table.segment_count == 0:
            # Carries no data; an unfinished packet stays pending for the next page.
            return packets

        pending = self._pending.pop(serial, None)
        skip_continued = False
        if header.is_continuation and pending is None:
            # Joined the stream in the middle of a packet, nothing to attach to.
            log.warning(f"Page {sequence} of stream {serial:08x} continues a packet that was never started, "
                        "dropping the continued data.")
            skip_continued = True
        elif not header.is_continuation and pending is not None:
            log.warning(f"Stream {serial:08x} has {len(pending.data)} unfinished packet bytes before page {sequence}, "
                        "dropping them.")
            pending = None

        if pending is None:
            pending = _PendingPacket(page_sequence_number=sequence)

        cursor: int = 0
        for value in page.segment_table.raw_data:
            segment = payload[cursor:cursor + value]
            cursor += value
            if not skip_continued:
                pending.data.extend(segment)
            if value < MAX_LACING_VALUE:
                if skip_continued:
                    skip_continued = False
                else:
                    packets.append(Packet(
                        data=bytes(pending.data),
                        serial_number=serial,
                        page_sequence_number=pending.page_sequence_number,
                        granule_position=header.granule_position_parsed,
                        first_in_stream=serial not in self._seen_serials,
                    ))
                    self._seen_serials.add(serial)
                pending = _PendingPacket(page_sequence_number=sequence)

        if page.segment_table.ends_with_open_packet and not skip_continued:
            self._pending[serial] = pending

        if header.is_end_of_stream and packets:
            packets[-1] = replace(packets[-1], last_in_stream=True)
        return packets

    def finish(self) -> Dict[int, int]:
        """Drop unfinished packets, returning the byte count left per serial number."""
        leftovers = {serial: len(pending.data) for serial, pending in self._pending.items()}
        for serial, length in leftovers.items():
            log.warning(f"Stream {serial:08x} ended with an unfinished packet of {length} bytes.")
        self._pending.clear()
        return leftovers


def read_packets(scanner: PageScanner, pages: Optional[Iterable[Page]] = None) -> Iterator[Packet]:
    """Yield every complete packet of the scanned file in file order.

    Pages already found by an earlier scan can be passed in, only their
    payloads are read then.
    """
    assembler = PacketAssembler()
    for page in scanner.iter_pages() if pages is None else pages:
        payload = scanner.read_payload(page)
        yield from assembler.push(page, payload)
    assembler.finish()
