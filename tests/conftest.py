# file: tests/conftest.py

"""
Shared fixtures: a small builder for synthetic Ogg pages and files.

Checksums are left at zero since nothing in the package verifies them.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

VORBIS_ID = b'\x01vorbis' + bytes(23)
THEORA_ID = b'\x80theora' + bytes(35)
OPUS_ID = b'OpusHead' + bytes(11)


def lacing_for(packet_lengths: Sequence[int]) -> List[int]:
    """Lacing values for complete packets of the given lengths."""
    values: List[int] = []
    for length in packet_lengths:
        values.extend([255] * (length // 255))
        values.append(length % 255)
    return values


class OggBuilder:
    def __init__(self, tmp_path: Path) -> None:
        self.tmp_path = tmp_path

    def header(
        self,
        serial: int = 1,
        sequence: int = 0,
        segment_count: int = 0,
        header_type: int = 0,
        granule: int = 0,
        capture: bytes = b'OggS',
        version: int = 0,
        checksum: int = 0,
    ) -> bytes:
        return (
            capture
            + bytes([version, header_type])
            + granule.to_bytes(8, 'little', signed=True)
            + serial.to_bytes(4, 'little')
            + sequence.to_bytes(4, 'little')
            + checksum.to_bytes(4, 'little')
            + bytes([segment_count])
        )

    def page(
        self,
        serial: int = 1,
        sequence: int = 0,
        packets: Sequence[bytes] = (),
        lacing: Optional[Sequence[int]] = None,
        payload: Optional[bytes] = None,
        header_type: int = 0,
        granule: int = 0,
        capture: bytes = b'OggS',
    ) -> bytes:
        """A full page. Pass ``packets`` for complete packets or ``lacing`` plus ``payload`` for anything else."""
        if lacing is None:
            lacing = lacing_for([len(p) for p in packets])
            payload = b''.join(packets)
        if payload is None:
            payload = bytes(range(256)) * (sum(lacing) // 256 + 1)
            payload = payload[:sum(lacing)]
        return (
            self.header(serial, sequence, len(lacing), header_type, granule, capture)
            + bytes(lacing)
            + payload
        )

    def stream_pages(self, serial: int, id_packet: bytes, count: int = 5) -> List[bytes]:
        """``count`` pages of one logical bitstream: id header, data pages, end of stream."""
        pages = [self.page(serial, 0, [id_packet], header_type=0x02)]
        for sequence in range(1, count):
            header_type = 0x04 if sequence == count - 1 else 0
            data = bytes([sequence]) * (40 + sequence)
            pages.append(self.page(serial, sequence, [data], header_type=header_type, granule=sequence * 100))
        return pages

    def interleave(self, *streams: List[bytes]) -> bytes:
        out = b''
        for group in zip(*streams):
            out += b''.join(group)
        return out

    def write(self, data: bytes, name: str = "test.ogg") -> Path:
        path = self.tmp_path / name
        path.write_bytes(data)
        return path


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    package_logger = logging.getLogger("oggscope")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def ogg(tmp_path: Path) -> OggBuilder:
    return OggBuilder(tmp_path)


@pytest.fixture
def av_file(ogg: OggBuilder) -> Path:
    """Vorbis stream 0x0a0b0c0d and Theora stream 0x11223344, five pages each, interleaved."""
    vorbis = ogg.stream_pages(0x0A0B0C0D, VORBIS_ID)
    theora = ogg.stream_pages(0x11223344, THEORA_ID)
    return ogg.write(ogg.interleave(vorbis, theora), "av.ogg")
