"""
Core module for the chunk engine.

A chunk is identified by its offset into the stream, a 4 characters tag and
the length of its payload

    +-----+--------+-------------------+-----+
    | tag | length | payload           | pad |
    +-----+--------+-------------------+-----+
      4       4         length          0/1

the padding byte is there only when the length is odd, so that the next chunk
starts at an even offset. A list is a chunk tagged 'RIFF' or 'LIST' whose
payload starts with another tag (the list type) followed by other chunks.

The engine works in two modes

 1. READING: the chunks are unpacked lazily from an existing stream, one at a time
 2. WRITING: the chunks are appended to the stream and the length is backpatched
    when the chunk is closed

In both cases a list can have only one active child (an open chunk or an
enumeration of its children) at a time; this is tracked by the busy level of
the list that each child captures when opened and releases when closed.
"""
import io
import logging
from typing import List, Optional

from . import codec
from .enum import ChunkMode, Compliant
from .streams import ChunkIO
from .exceptions import (
    MalformedContainerException,
    UnexpectedChunkTagException,
    OutOfRangeBeforeException,
    EndOfChunkException,
    ClosedChunkException,
    ListBusyException,
    ListNotOpenException,
    ChunkModeException,
    ListIsReadOnlyException,
    UnrecoverableException,
)


logger = logging.getLogger(__name__)

TAG_LENGTH = 4
HEADER_LENGTH = 8  # tag + length
LIST_HEADER_LENGTH = HEADER_LENGTH + TAG_LENGTH
MAX_LENGTH = 0xffffffff

RIFF_TAG = 'RIFF'
LIST_TAG = 'LIST'


def encode_tag(tag) -> bytes:
    '''Tags are 4 bytes, not necessarily printable: we use latin1 so that each
    character maps to exactly one byte.'''
    if isinstance(tag, (bytes, bytearray)):
        raw = bytes(tag)
    elif isinstance(tag, str):
        try:
            raw = tag.encode('latin1')
        except UnicodeEncodeError:
            raise ValueError('tag %r must contain only single byte characters' % tag) from None
    else:
        raise ValueError('\'%s\' is the wrong kind of tag to use' % tag.__class__.__name__)

    if len(raw) != TAG_LENGTH:
        raise ValueError('tag %r must be %d characters in length' % (tag, TAG_LENGTH))

    return raw


def decode_tag(raw: bytes) -> str:
    return raw.decode('latin1')


class Chunk(object):
    """
    Represents the region [offset, offset + 8 + length) of the stream (plus the
    padding byte if any).

    Don't instantiate it directly: use Chunk.unpack() to load an existing chunk
    and Chunk.pack() to start writing a new one; usually you obtain chunks from
    a ChunkList.

    In READING mode all the reads are bounded by the payload of the chunk: it's not
    possible to read the data of a sibling. In WRITING mode nothing is bounded and
    the length is derived at close() time from how far the stream went.
    """

    def __init__(self, stream, offset: int, tag: str, length: int, mode: ChunkMode,
                 father=None, compliant=Compliant.INHERIT):
        self.logger = logging.getLogger(__name__)
        self.stream = stream
        self.father = father
        self.compliant = compliant
        self._offset = offset
        self._tag = tag
        self._length = length
        self._mode = mode
        self._list = None  # set when promoted via as_list()
        self._is_open = False

        if self.father is not None:
            self.father.capture()

        self._is_open = True

    @classmethod
    def unpack(cls, stream, offset: int, father=None, compliant=Compliant.INHERIT) -> "Chunk":
        '''Load the header of the chunk at the given offset, the cursor is left
        at the start of the payload.'''
        chain = father.chain if father is not None else []

        if offset & 1:
            raise MalformedContainerException('chunk offset %d is odd' % offset, chain=chain)

        stream.seek(offset)
        header = stream.read(HEADER_LENGTH)

        if len(header) < HEADER_LENGTH:
            raise MalformedContainerException(
                'truncated chunk header at offset %d (%d bytes)' % (offset, len(header)), chain=chain)

        tag = decode_tag(header[:TAG_LENGTH])
        length = codec.decode('I', header[TAG_LENGTH:])

        logger.debug('unpacked chunk \'%s\' at offset 0x%x with length %d' % (tag, offset, length))

        return cls(stream, offset, tag, length, ChunkMode.READING, father=father, compliant=compliant)

    @classmethod
    def pack(cls, stream, tag, father=None, compliant=Compliant.INHERIT) -> "Chunk":
        '''Start a new chunk at the actual position of the stream writing a
        provisional header with a zero length.'''
        raw_tag = encode_tag(tag)
        offset = stream.tell()

        # the engine leaves the stream at even offsets only
        if offset & 1:
            chain = father.chain if father is not None else []
            raise UnrecoverableException('trying to write a chunk at the odd offset %d' % offset, chain=chain)

        stream.write(raw_tag + codec.encode('I', 0))

        logger.debug('packing chunk \'%s\' at offset 0x%x' % (decode_tag(raw_tag), offset))

        return cls(stream, offset, decode_tag(raw_tag), 0, ChunkMode.WRITING, father=father, compliant=compliant)

    def __repr__(self):
        return '<%s(tag=%r, offset=0x%x, length=%d, mode=%s%s)>' % (
            self.__class__.__name__,
            self._tag,
            self._offset,
            self._length,
            self._mode.name,
            '' if self._is_open else ', closed',
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is not None and self._list is not None and self._list.is_busy:
            return

        self.close()

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def length(self) -> int:
        '''In WRITING mode this is zero until the chunk is closed'''
        return self._length

    @property
    def data_offset(self) -> int:
        return self._offset + HEADER_LENGTH

    @property
    def data_offset_end(self) -> int:
        return self.data_offset + self._length

    @property
    def size(self) -> int:
        '''Bytes occupied into the stream, header and padding included'''
        return HEADER_LENGTH + self._length + (self._length & 1)

    @property
    def mode(self) -> ChunkMode:
        return self._mode

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def is_writing(self) -> bool:
        return self._mode == ChunkMode.WRITING

    @property
    def remaining(self) -> int:
        '''Bytes of payload still to read from the actual position'''
        return max(self.data_offset_end - self.stream.tell(), 0)

    @property
    def chain(self) -> List[str]:
        chain = self.father.chain if self.father is not None else []
        chain.append(self._tag)

        return chain

    @property
    def root(self):
        instance = self
        while instance.father is not None:
            instance = instance.father

        return instance

    def is_compliant(self, level: Compliant) -> bool:
        instance = self
        while instance is not None:
            if instance.compliant & level:
                return True
            if not instance.compliant & Compliant.INHERIT:
                break

            instance = instance.father

        return False

    def _check_open(self):
        if not self._is_open:
            raise ClosedChunkException('chunk \'%s\' is closed' % self._tag, chain=self.chain)

    def _check_readable(self):
        self._check_open()
        if self.is_writing:
            raise ChunkModeException('chunk \'%s\' is in write mode' % self._tag, chain=self.chain)

    def _check_writable(self):
        self._check_open()
        if not self.is_writing:
            raise ChunkModeException('chunk \'%s\' is in read mode' % self._tag, chain=self.chain)

    def _check_range(self, position: int, size: int):
        if position < self.data_offset:
            raise OutOfRangeBeforeException(
                'attempt to read before the start of the data (%d < %d)' % (position, self.data_offset),
                chain=self.chain)

        if position + size > self.data_offset_end:
            raise EndOfChunkException(
                'attempt to read after the end of the data (%d > %d)' % (position + size, self.data_offset_end),
                chain=self.chain)

    def read(self, size: int = -1) -> bytes:
        '''Read exactly size bytes from the payload, a negative size reads
        up to the end of the chunk.'''
        self._check_readable()

        position = self.stream.tell()

        if size is None or size < 0:
            size = max(self.data_offset_end - position, 0)

        self._check_range(position, size)

        data = self.stream.read(size)

        if len(data) < size:
            raise MalformedContainerException(
                'stream is truncated: wanted %d bytes at offset %d, got %d' % (size, position, len(data)),
                chain=self.chain)

        return data

    def read_all(self) -> bytes:
        '''Return the whole payload whatever the actual position is'''
        self.seek(0)
        return self.read()

    def read_value(self, fmt: str):
        return codec.decode(fmt, self.read(codec.get_size(fmt)))

    def read_char(self) -> str:
        return codec.decode_char(self.read(codec.CHAR_SIZE))

    def read_chars(self, count: int) -> str:
        return codec.decode_chars(self.read(count * codec.CHAR_SIZE))

    def read_string(self) -> str:
        return self.read_chars(self.read_value('I'))

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        '''Move the cursor inside the payload, the returned position is
        relative to the start of the data. Seeking from the current position
        is clamped to the payload.'''
        self._check_readable()

        if whence == io.SEEK_SET:
            position = self.data_offset + offset
            self._check_range(position, 0)
        elif whence == io.SEEK_CUR:
            position = self.stream.tell() + offset
            position = min(max(position, self.data_offset), self.data_offset_end)
        elif whence == io.SEEK_END:
            position = self.data_offset_end + offset
            self._check_range(position, 0)
        else:
            raise ValueError('invalid whence (%r)' % whence)

        self.stream.seek(position)

        return position - self.data_offset

    def tell(self) -> int:
        self._check_open()
        return self.stream.tell() - self.data_offset

    def write(self, data) -> int:
        self._check_writable()
        return self.stream.write(data)

    def write_value(self, fmt: str, value) -> int:
        return self.write(codec.encode(fmt, value))

    def write_char(self, char: str) -> int:
        return self.write(codec.encode_char(char))

    def write_chars(self, chars: str) -> int:
        return self.write(codec.encode_chars(chars))

    def write_string(self, value: str) -> int:
        return self.write(codec.encode_string(value))

    def flush(self):
        self.stream.flush()

    def as_stream(self) -> ChunkIO:
        '''Returns a file-like object bounded to the payload of this chunk'''
        self._check_open()
        return ChunkIO(self)

    def as_list(self, expected_tag: str = LIST_TAG) -> "ChunkList":
        '''Reinterpret this chunk as a list: the list is built on top of this
        very chunk, closing one closes the other.'''
        self._check_readable()

        if self._list is not None:
            if self._list.tag != expected_tag:
                raise UnexpectedChunkTagException(
                    'chunk must be a \'%s\' chunk, found \'%s\'' % (expected_tag, self._tag), chain=self.chain)
            return self._list

        return ChunkList(self, expected_tag)

    def _backpatch(self):
        length = self.stream.tell() - self.data_offset

        if length < 0:
            raise UnrecoverableException(
                'stream is before the data of the chunk (%d)' % self.stream.tell(), chain=self.chain)

        if length > MAX_LENGTH:
            raise MalformedContainerException(
                'chunk length %d doesn\'t fit into 32 bits' % length, chain=self.chain)

        self._length = length

        with self.stream.preserve():
            self.stream.seek(self._offset + TAG_LENGTH)
            self.stream.write(codec.encode('I', length))

        self.stream.seek(self.data_offset_end)

        # there's one padding byte if the length is odd
        if length & 1:
            self.stream.write(b'\x00')

        self.logger.debug('backpatched chunk \'%s\' at offset 0x%x with length %d' % (
            self._tag, self._offset, length))

    def close(self):
        if not self._is_open:
            return

        if self._list is not None and self._list.is_busy:
            raise ListBusyException('the \'%s\' list is busy' % self._list.list_type, chain=self.chain)

        if self.is_writing:
            self._backpatch()

        self._is_open = False

        if self.father is not None:
            self.father.release()


class ChunkList(object):
    """
    Composed of a chunk tagged 'RIFF' or 'LIST' plus the list type read from
    (or written as) the first 4 bytes of its payload.

    In READING mode chunks() returns a lazy enumeration of the children, in
    WRITING mode create_chunk() and create_list() append new children. Only one
    of these can be active at a time.
    """

    def __init__(self, chunk: Chunk, expected_tag: str = LIST_TAG, list_type=None):
        self.logger = logging.getLogger(__name__)

        if chunk is None:
            raise ValueError('a list needs a chunk')

        if chunk.tag != expected_tag:
            raise UnexpectedChunkTagException(
                'chunk must be a \'%s\' chunk, found \'%s\'' % (expected_tag, chunk.tag), chain=chunk.chain)

        self.chunk = chunk
        self._busy_level = 0
        self._list_type = None

        if chunk.is_writing:
            raw = encode_tag(list_type)
            chunk.write(raw)
        else:
            chunk.seek(0)
            try:
                raw = chunk.read(TAG_LENGTH)
            except EndOfChunkException as e:
                raise MalformedContainerException(
                    'the \'%s\' chunk is too short to be a list' % chunk.tag, chain=chunk.chain) from e

        self._list_type = decode_tag(raw)
        chunk._list = self

        self.logger.debug('%s list \'%s\' of type \'%s\' at offset 0x%x' % (
            'packing' if chunk.is_writing else 'unpacked', chunk.tag, self._list_type, chunk.offset))

    @classmethod
    def unpack(cls, stream, offset: int = 0, father=None, tag: str = RIFF_TAG,
               compliant=Compliant.INHERIT) -> "ChunkList":
        chunk = Chunk.unpack(stream, offset, father=father, compliant=compliant)
        try:
            return cls(chunk, tag)
        except MalformedContainerException:
            chunk.close()
            raise

    @classmethod
    def pack(cls, stream, list_type, father=None, tag: str = LIST_TAG,
             compliant=Compliant.INHERIT) -> "ChunkList":
        encode_tag(list_type)  # fail before touching the stream
        chunk = Chunk.pack(stream, tag, father=father, compliant=compliant)

        return cls(chunk, tag, list_type=list_type)

    def __repr__(self):
        return '<%s(tag=%r, list_type=%r, offset=0x%x, length=%d, mode=%s%s)>' % (
            self.__class__.__name__,
            self.tag,
            self._list_type,
            self.offset,
            self.length,
            self.chunk.mode.name,
            '' if self.is_open else ', closed',
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        # an open child means the body failed halfway, don't hide its exception
        if exc_type is not None and self.is_busy:
            self.logger.warning('leaving the \'%s\' list open since it\'s busy' % self._list_type)
            return

        self.close()

    def __iter__(self):
        return self.chunks()

    @property
    def stream(self):
        return self.chunk.stream

    @property
    def father(self):
        return self.chunk.father

    @property
    def compliant(self) -> Compliant:
        return self.chunk.compliant

    @property
    def tag(self) -> str:
        return self.chunk.tag

    @property
    def list_type(self) -> str:
        return self._list_type

    @property
    def offset(self) -> int:
        return self.chunk.offset

    @property
    def length(self) -> int:
        return self.chunk.length

    @property
    def data_offset(self) -> int:
        return self.chunk.data_offset

    @property
    def is_open(self) -> bool:
        return self.chunk.is_open

    @property
    def is_writing(self) -> bool:
        return self.chunk.is_writing

    @property
    def is_busy(self) -> bool:
        return self._busy_level > 0

    @property
    def busy_level(self) -> int:
        return self._busy_level

    @property
    def chain(self) -> List[str]:
        chain = self.chunk.chain
        if self._list_type is not None:
            chain[-1] = '%s:%s' % (chain[-1], self._list_type)

        return chain

    def is_compliant(self, level: Compliant) -> bool:
        return self.chunk.is_compliant(level)

    def capture(self):
        self._busy_level += 1

    def release(self):
        if self._busy_level == 0:
            raise UnrecoverableException('releasing the \'%s\' list that is not busy' % self._list_type,
                                         chain=self.chain)
        self._busy_level -= 1

    def _check_available(self):
        if self.is_busy:
            raise ListBusyException('the \'%s\' list is busy' % self._list_type, chain=self.chain)

        if not self.is_open:
            raise ListNotOpenException('the \'%s\' list is not open' % self._list_type, chain=self.chain)

    def _check_can_modify(self):
        self._check_available()

        if not self.is_writing:
            raise ListIsReadOnlyException(
                'the \'%s\' list is in reading mode and cannot be modified' % self._list_type, chain=self.chain)

    def chunks(self) -> "ChunkEnumerator":
        '''Enumerate the children of this list: each chunk is closed when the next
        one is requested, the list stays busy until the enumeration is exhausted
        or closed.'''
        self._check_available()

        if self.is_writing:
            raise ChunkModeException(
                'the \'%s\' list is in writing mode and cannot be enumerated' % self._list_type, chain=self.chain)

        return ChunkEnumerator(self)

    def create_chunk(self, tag) -> Chunk:
        self._check_can_modify()

        return Chunk.pack(self.stream, tag, father=self)

    def create_list(self, list_type) -> "ChunkList":
        self._check_can_modify()

        return ChunkList.pack(self.stream, list_type, father=self)

    def close(self):
        if not self.is_open:
            return

        if self.is_busy:
            raise ListBusyException('cannot close the \'%s\' list while busy' % self._list_type, chain=self.chain)

        self.chunk.close()


class ChunkEnumerator(object):
    """
    Single pass iterator over the children of a list in READING mode.

    It keeps the list busy from its creation until it's exhausted, closed
    or garbage collected, whichever comes first.
    """

    def __init__(self, riff_list: ChunkList):
        self._done = True  # nothing to release until the list is captured
        self.logger = logging.getLogger(__name__)
        self.list = riff_list
        self.start = riff_list.data_offset + TAG_LENGTH
        self.end = riff_list.chunk.data_offset_end
        self._cursor = self.start
        self._current: Optional[Chunk] = None

        riff_list.capture()
        self._done = False

        self.logger.debug('enumerating \'%s\' from 0x%x to 0x%x' % (riff_list.list_type, self.start, self.end))

    def __iter__(self):
        return self

    def __next__(self) -> Chunk:
        if self._done:
            raise StopIteration

        try:
            chunk = self._next_chunk()
        except BaseException:
            self.close()
            raise

        if chunk is None:
            self.close()
            raise StopIteration

        return chunk

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __del__(self):
        self.close()

    @property
    def is_done(self) -> bool:
        return self._done

    def _next_chunk(self) -> Optional[Chunk]:
        if self._current is not None:
            current, self._current = self._current, None
            current.close()
            end = current.data_offset_end
            self._cursor = end + (end & 1)

        # trailing bytes that cannot hold a header are ignored
        if self._cursor + HEADER_LENGTH > self.end:
            return None

        chunk = Chunk.unpack(self.list.stream, self._cursor, father=self.list)

        if chunk.data_offset_end > self.end:
            message = 'chunk \'%s\' at offset 0x%x ends after its list (0x%x > 0x%x)' % (
                chunk.tag, chunk.offset, chunk.data_offset_end, self.end)
            if self.list.is_compliant(Compliant.BOUNDS):
                chain = chunk.chain
                chunk.close()
                raise MalformedContainerException(message, chain=chain)

            self.logger.warning(message)

        self._current = chunk

        return chunk

    def close(self):
        if self._done:
            return

        self._done = True

        try:
            if self._current is not None:
                self._current.close()
        finally:
            self._current = None
            self.list.release()
