'''
# Resource Interchange File Format

The outermost chunk of a RIFF file is a list tagged 'RIFF' whose list type
identifies the format of the file (e.g. 'WAVE', 'AVI ').

RiffFile owns the underlying stream and closes it with itself; use
open_for_read()/open_for_write() if you want to keep the stream open after
the root list is closed (for example to call getvalue() on an io.BytesIO).
'''
import logging

from .core import ChunkList, Chunk, RIFF_TAG, encode_tag
from .enum import Compliant
from .streams import Stream


logger = logging.getLogger(__name__)


class RiffFile(ChunkList):
    '''Open a RIFF file for reading or, if format_tag is given, for writing.

    The source can be a path, some bytes or a seekable binary file object.'''

    def __init__(self, source, format_tag=None, compliant=Compliant.BOUNDS):
        if format_tag is not None:
            encode_tag(format_tag)

        self.file = Stream(source, flags='r' if format_tag is None else 'w')

        try:
            if format_tag is None:
                chunk = Chunk.unpack(self.file, 0, compliant=compliant)
                super().__init__(chunk, RIFF_TAG)
            else:
                chunk = Chunk.pack(self.file, RIFF_TAG, compliant=compliant)
                super().__init__(chunk, RIFF_TAG, list_type=format_tag)
        except Exception:
            logger.debug('failed to open %r' % self.file)
            self.file.close()
            raise

        logger.debug('opened %r from %r' % (self, self.file))

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None:
            self.close()
            return

        # the container is broken anyway, at least release the file
        try:
            super().__exit__(exc_type, exc_value, traceback)
        finally:
            self._close_file()

    def _close_file(self):
        if not self.file.closed:
            self.file.flush()
            self.file.close()

    def close(self):
        super().close()
        self._close_file()


def open_for_read(stream, offset: int = 0, compliant=Compliant.BOUNDS) -> ChunkList:
    '''Returns the root list of the RIFF at the given offset of the stream'''
    return ChunkList.unpack(Stream(stream, flags='r'), offset, tag=RIFF_TAG, compliant=compliant)


def open_for_write(stream, format_tag, compliant=Compliant.BOUNDS) -> ChunkList:
    '''Returns the root list of a new RIFF starting at the actual position of the stream'''
    return ChunkList.pack(Stream(stream, flags='w'), format_tag, tag=RIFF_TAG, compliant=compliant)
