# errors.py

"""
Failures raised while walking an Ogg container.

Both concrete errors derive from OggInspectError so a scan driver can catch
them in one place. An unmatched codec signature and an empty bitstream
selection are normal outcomes and are not represented here.
"""

from typing import Optional


class OggInspectError(Exception):
    """Base exception for all inspection errors."""
    pass


class TruncatedInput(OggInspectError):
    """Raised when fewer bytes remain than a header, segment table or payload declares."""

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        expected: Optional[int] = None,
        available: Optional[int] = None,
    ):
        super().__init__(message)
        self.offset = offset
        self.expected = expected
        self.available = available


class InvalidPage(OggInspectError):
    """Raised when a page boundary does not start with the capture pattern."""

    def __init__(self, message: str, offset: int, capture_pattern: bytes):
        super().__init__(message)
        self.offset = offset
        self.capture_pattern = capture_pattern
