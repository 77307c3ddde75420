import io

import pytest

from riffstruct.file import RiffFile
from riffstruct.utils import find_chunk, write_chunk
from riffstruct.exceptions import UnexpectedChunkTagException, ListBusyException

from conftest import make_chunk, make_list, make_riff


class NotSeekable(io.RawIOBase):

    def readable(self):
        return True

    def seekable(self):
        return False


def test_write_and_read_path(tmp_path):
    path = tmp_path / 'test.wav'

    with RiffFile(path, 'WAVE') as riff:
        assert riff.is_writing
        write_chunk(riff, 'data', b'\x01\x02')

    assert riff.file.closed
    assert path.read_bytes() == make_riff(b'WAVE', [make_chunk(b'data', b'\x01\x02')])

    with RiffFile(str(path)) as riff:
        assert riff.list_type == 'WAVE'
        assert find_chunk(riff, 'data') == b'\x01\x02'


@pytest.mark.parametrize('wrap', [bytes, bytearray, io.BytesIO])
def test_read_sources(sample_riff, wrap):
    with RiffFile(wrap(sample_riff)) as riff:
        assert riff.tag == 'RIFF'
        assert riff.list_type == 'WAVE'
        assert [_.tag for _ in riff.chunks()] == ['fmt ', 'LIST', 'data']


def test_close_closes_the_stream(sample_riff):
    stream = io.BytesIO(sample_riff)
    riff = RiffFile(stream)

    riff.close()

    assert stream.closed
    assert not riff.is_open

    # twice is fine
    riff.close()


def test_close_with_open_child_keeps_the_stream():
    stream = io.BytesIO()
    riff = RiffFile(stream, 'TEST')
    chunk = riff.create_chunk('ABCD')

    with pytest.raises(ListBusyException):
        riff.close()

    assert not stream.closed

    chunk.close()
    riff.close()

    assert stream.closed


def test_malformed_file_closes_the_stream():
    stream = io.BytesIO(make_list(b'RIFX', b'TEST', []))

    with pytest.raises(UnexpectedChunkTagException):
        RiffFile(stream)

    assert stream.closed


def test_non_seekable_source():
    with pytest.raises(ValueError):
        RiffFile(NotSeekable())


def test_cannot_write_on_bytes():
    with pytest.raises(ValueError):
        RiffFile(b'', 'WAVE')


def test_wrong_format_tag():
    stream = io.BytesIO()

    with pytest.raises(ValueError):
        RiffFile(stream, 'WAV')

    assert stream.getvalue() == b''


def test_cannot_write_on_bytearray():
    target = bytearray()

    with pytest.raises(ValueError):
        RiffFile(target, 'WAVE')

    assert target == bytearray()


def test_exception_in_body_is_not_hidden(tmp_path):
    path = tmp_path / 'broken.wav'

    with pytest.raises(KeyError):
        with RiffFile(path, 'WAVE') as riff:
            riff.create_chunk('data')
            raise KeyError('boom')

    assert riff.file.closed
    assert riff.is_busy


def test_exception_in_body_still_closes_the_container():
    stream = io.BytesIO()

    with pytest.raises(KeyError):
        with RiffFile(stream, 'TEST') as riff:
            write_chunk(riff, 'ABCD', b'\x01')
            raise KeyError('boom')

    assert not riff.is_open
    assert stream.closed
