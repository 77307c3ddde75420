import io
import struct

import pytest


def make_chunk(tag: bytes, data: bytes) -> bytes:
    raw = tag + struct.pack('<I', len(data)) + data

    if len(data) % 2:
        raw += b'\x00'

    return raw


def make_list(tag: bytes, list_type: bytes, chunks) -> bytes:
    return make_chunk(tag, list_type + b''.join(chunks))


def make_riff(list_type: bytes, chunks) -> bytes:
    return make_list(b'RIFF', list_type, chunks)


FMT_DATA = struct.pack('<HHIIHH', 1, 2, 44100, 176400, 4, 16)


@pytest.fixture
def sample_riff() -> bytes:
    """
        0x00 RIFF (WAVE)     length 78
        0x0c   fmt           length 16
        0x24   LIST (INFO)   length 30
        0x30     INAM        length 5 (padded)
        0x3e     ISFT        length 4
        0x4a   data          length 3 (padded)
    """
    return make_riff(b'WAVE', [
        make_chunk(b'fmt ', FMT_DATA),
        make_list(b'LIST', b'INFO', [
            make_chunk(b'INAM', b'test\x00'),
            make_chunk(b'ISFT', b'abcd'),
        ]),
        make_chunk(b'data', b'\x01\x02\x03'),
    ])


@pytest.fixture
def sample_stream(sample_riff):
    return io.BytesIO(sample_riff)
