# bitstreams.py
from typing import Dict, Iterable, List, Optional

from oggscope.core import logger
from oggscope.services.inspect.codec import CodecKind, classify
from oggscope.services.inspect.packets import Packet
from oggscope.services.inspect.scanner import Page

log = logger.get_logger()


def group_by_serial(packets: Iterable[Packet]) -> Dict[int, List[Packet]]:
    """Split packets into one ordered list per logical bitstream."""
    bitstreams: Dict[int, List[Packet]] = {}
    for packet in packets:
        bitstreams.setdefault(packet.serial_number, []).append(packet)
    return bitstreams


def group_pages_by_serial(pages: Iterable[Page]) -> Dict[int, List[Page]]:
    grouped: Dict[int, List[Page]] = {}
    for page in pages:
        grouped.setdefault(page.header.serial_number, []).append(page)
    return grouped


def check_page_order(pages: Iterable[Page]) -> List[int]:
    """Return the serial numbers whose page sequence numbers do not strictly increase."""
    out_of_order: List[int] = []
    for serial, stream_pages in group_pages_by_serial(pages).items():
        sequence_numbers = [page.header.page_sequence_number_parsed for page in stream_pages]
        for previous, current in zip(sequence_numbers, sequence_numbers[1:]):
            if current <= previous:
                log.warning(f"Stream {serial:08x}: page {current} follows page {previous}.")
                out_of_order.append(serial)
                break
    return out_of_order


def classify_bitstreams(bitstreams: Dict[int, List[Packet]]) -> Dict[int, CodecKind]:
    """Identify the codec of every bitstream from its first packet."""
    return {
        serial: classify(packets[0].data) if packets else CodecKind.UNKNOWN
        for serial, packets in bitstreams.items()
    }


def select_bitstreams(bitstreams: Dict[int, List[Packet]], kind: CodecKind) -> Dict[int, List[Packet]]:
    """
    All bitstreams whose first packet identifies as ``kind``, in iteration order.

    An empty result means no bitstream of that codec is present.
    """
    selected: Dict[int, List[Packet]] = {}
    for serial, codec in classify_bitstreams(bitstreams).items():
        if codec == kind:
            selected[serial] = bitstreams[serial]
    if not selected:
        log.info(f"No {kind.value} bitstream among {len(bitstreams)} logical bitstreams.")
    elif len(selected) > 1:
        log.info(f"{len(selected)} {kind.value} bitstreams found: {', '.join(f'{s:08x}' for s in selected)}.")
    return selected


def select_bitstream(bitstreams: Dict[int, List[Packet]], kind: CodecKind) -> Optional[List[Packet]]:
    """Single bitstream of ``kind``; when several match the last one wins."""
    selected = select_bitstreams(bitstreams, kind)
    if not selected:
        return None
    return list(selected.values())[-1]
