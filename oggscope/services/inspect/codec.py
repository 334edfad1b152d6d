# codec.py
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class CodecKind(Enum):
    VORBIS = "vorbis"
    OPUS = "opus"
    THEORA = "theora"
    SPEEX = "speex"
    SKELETON = "skeleton"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: str) -> "CodecKind":
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = [kind.value for kind in cls]
            raise ValueError(f"Unknown codec kind {name!r}. Must be one of {valid}.") from None


# Identification header magic sequences:
# https://www.xiph.org/vorbis/doc/Vorbis_I_spec.html#x1-620004.2.1
VORBIS_MAGIC: bytes = b'\x01vorbis'
# https://datatracker.ietf.org/doc/html/rfc7845#section-5.1
OPUS_MAGIC: bytes = b'OpusHead'
# https://www.theora.org/doc/Theora.pdf#section.6.2
THEORA_MAGIC: bytes = b'\x80theora'
# http://www.speex.org/docs/manual/speex-manual/node8.html
SPEEX_MAGIC: bytes = b'Speex   '
# https://wiki.xiph.org/Ogg_Skeleton_4
SKELETON_MAGIC: bytes = b'fishead\x00'

# Leading byte -> (codec, full magic). Every leading byte is unique, so a
# failed prefix check never falls through to another codec.
_MAGIC_BY_LEADING_BYTE: Dict[int, Tuple[CodecKind, bytes]] = {
    VORBIS_MAGIC[0]: (CodecKind.VORBIS, VORBIS_MAGIC),
    OPUS_MAGIC[0]: (CodecKind.OPUS, OPUS_MAGIC),
    THEORA_MAGIC[0]: (CodecKind.THEORA, THEORA_MAGIC),
    SPEEX_MAGIC[0]: (CodecKind.SPEEX, SPEEX_MAGIC),
    SKELETON_MAGIC[0]: (CodecKind.SKELETON, SKELETON_MAGIC),
}


@dataclass(frozen=True)
class CodecMatch:
    kind: CodecKind
    signature_length: int


def identify_codec(packet_data: bytes) -> Optional[CodecMatch]:
    """Match the start of a packet against the known identification headers.

    Returns None for empty input, an unknown leading byte, or a leading byte
    whose full magic does not follow.
    """
    if len(packet_data) < 1:
        return None

    candidate = _MAGIC_BY_LEADING_BYTE.get(packet_data[0])
    if candidate is None:
        return None

    kind, magic = candidate
    if bytes(packet_data[:len(magic)]) != magic:
        return None
    return CodecMatch(kind=kind, signature_length=len(magic))


def classify(packet_data: bytes) -> CodecKind:
    match = identify_codec(packet_data)
    return match.kind if match is not None else CodecKind.UNKNOWN
