"""
Pytest configuration and shared fixtures for remotedesk.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


class BytesSocket:
    """Socket stand-in that serves recv() from a fixed byte string."""

    def __init__(self, data=b"", chunk=None):
        self.data = bytes(data)
        self.pos = 0
        self.chunk = chunk
        self.recv_sizes = []

    def recv(self, n):
        self.recv_sizes.append(n)
        if self.chunk:
            n = min(n, self.chunk)
        piece = self.data[self.pos:self.pos + n]
        self.pos += len(piece)
        return piece

    @property
    def remaining(self):
        return self.data[self.pos:]


@pytest.fixture
def bytes_socket():
    return BytesSocket


@pytest.fixture
def test_frame():
    """A small BGR frame with a gradient so JPEG output is non-trivial."""
    frame = np.zeros((48, 64, 3), dtype=np.uint8)
    frame[:, :, 0] = np.arange(64, dtype=np.uint8)[None, :] * 4
    frame[:, :, 2] = np.arange(48, dtype=np.uint8)[:, None] * 5
    return frame
