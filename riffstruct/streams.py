import io
import os
import logging
from contextlib import contextmanager


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around bytes/path/file object to
    uniform its properties: the chunks need random access so a seekable
    object is mandatory.

    The flags follow open(): 'r' to read an existing container, 'w' to
    create a new one.'''
    def __init__(self, obj, flags='r'):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        if flags not in ('r', 'w'):
            raise ValueError('flags must be \'r\' or \'w\', not \'%s\'' % flags)

        if isinstance(obj, os.PathLike):
            obj = os.fspath(obj)

        self._type = type(obj)
        self.flags = flags
        self.obj = obj
        self.history = []

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, self.init_file)

        init_method()

    def __getattr__(self, name):
        return getattr(self.obj, name)

    def __repr__(self):
        return '<%s(%s, flags=%s)>' % (self.__class__.__name__, self._type.__name__, self.flags)

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        self.obj = open(self.obj, 'rb' if self.flags == 'r' else 'w+b')

    def init_bytes(self):
        '''We think these are raw bytes'''
        if self.flags == 'w':
            raise ValueError('cannot write on immutable bytes, use io.BytesIO()')
        self.obj = io.BytesIO(self.obj)

    def init_bytearray(self):
        if self.flags == 'w':
            raise ValueError('cannot write on a bytearray, use io.BytesIO()')
        self.obj = io.BytesIO(self.obj)

    def init_file(self):
        '''Everything else must behave like a seekable binary file'''
        seekable = getattr(self.obj, 'seekable', None)
        if seekable is None or not seekable():
            raise ValueError('\'%s\' is not a seekable stream' % self._type.__name__)

    def seek(self, offset, whence=io.SEEK_SET):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        return self.obj.seek(offset, whence)

    def tell(self):
        return self.obj.tell()

    def read(self, size):
        return self.obj.read(size)

    def write(self, data):
        return self.obj.write(data)

    def save(self):
        self.history.append(self.obj.tell())

    def restore(self):
        old_seek = self.history.pop()
        self.obj.seek(old_seek)

    @contextmanager
    def preserve(self):
        '''Do something somewhere else in the stream and then come back'''
        self.save()
        try:
            yield self
        finally:
            self.restore()


class ChunkIO(io.RawIOBase):
    '''Bounded cursor over the payload of a chunk.

    It allows to pass a chunk to the code expecting a file object: differently
    from the Chunk's own read() a short read at the end of the data returns what
    is available, like any other raw stream. Closing it doesn't close the chunk.'''

    def __init__(self, chunk):
        super().__init__()
        self.chunk = chunk

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.chunk)

    def readable(self):
        return not self.chunk.is_writing

    def writable(self):
        return self.chunk.is_writing

    def seekable(self):
        return not self.chunk.is_writing

    def readinto(self, buffer):
        size = min(len(buffer), self.chunk.remaining)
        data = self.chunk.read(size)
        buffer[:len(data)] = data

        return len(data)

    def write(self, data):
        return self.chunk.write(data)

    def seek(self, offset, whence=io.SEEK_SET):
        return self.chunk.seek(offset, whence)

    def tell(self):
        return self.chunk.tell()
