import io

import pytest

from riffstruct.streams import Stream


def test_bytes_stream():
    stream = Stream(b'\x01\x02\x03\x04\x05')

    assert stream.read(1) == b'\x01'
    assert stream.read(1) == b'\x02'
    assert stream.tell() == 2


def test_file_stream(tmp_path):
    path = tmp_path / 'data'
    path.write_bytes(b'\x01\x02\x03\x04\x05')

    stream = Stream(str(path))

    stream.seek(3)
    assert stream.read(2) == b'\x04\x05'

    stream.close()
    assert stream.closed


def test_path_stream_for_writing(tmp_path):
    path = tmp_path / 'data'

    stream = Stream(path, flags='w')
    stream.write(b'\x01\x02')
    stream.seek(0)
    assert stream.read(2) == b'\x01\x02'
    stream.close()

    assert path.read_bytes() == b'\x01\x02'


def test_file_object_is_used_as_it_is():
    buffer = io.BytesIO(b'\x01\x02')

    stream = Stream(buffer)

    assert stream.obj is buffer
    assert stream.getvalue() == b'\x01\x02'


def test_save_restore():
    stream = Stream(b'\x01\x02\x03\x04\x05')

    stream.seek(1)
    stream.save()
    stream.seek(4)
    stream.restore()

    assert stream.tell() == 1

    with stream.preserve():
        stream.seek(3)
        assert stream.read(1) == b'\x04'

    assert stream.tell() == 1


def test_wrong_arguments():
    with pytest.raises(ValueError):
        Stream(b'', flags='a')

    with pytest.raises(ValueError):
        Stream(b'').seek('0')


@pytest.mark.parametrize('obj', [b'', bytearray()])
def test_in_memory_buffers_are_read_only(obj):
    '''Writes would go to a private copy, so they are refused'''
    with pytest.raises(ValueError):
        Stream(obj, flags='w')

    assert Stream(obj).read(1) == b''
