class RiffException(Exception):
    '''Base class to extend in order to throw exception in riffstruct.

    Other than the message it takes the chain of chunk tags, from the root
    down to the chunk that caused the exception.
    '''

    def __init__(self, message='', chain=None):
        self.chain = chain if chain is not None else []
        super().__init__(message)

    def __str__(self):
        message = super().__str__()
        if not self.chain:
            return message

        return '%s [%s]' % (message, '/'.join(self.chain))


class MalformedContainerException(RiffException):
    '''The bytes don't describe a valid chunk (bad header, odd offset, truncated data).'''
    pass


class UnexpectedChunkTagException(MalformedContainerException):
    pass


class OutOfRangeException(RiffException):
    pass


class OutOfRangeBeforeException(OutOfRangeException):
    pass


class EndOfChunkException(OutOfRangeException, EOFError):
    pass


class ChunkStateException(RiffException):
    pass


class ClosedChunkException(ChunkStateException):
    pass


class ListBusyException(ChunkStateException):
    '''A child chunk or an enumeration is still active on the list.'''
    pass


class ListNotOpenException(ChunkStateException):
    pass


class ChunkModeException(RiffException):
    '''Reading from a chunk opened for writing or the other way around.'''
    pass


class ListIsReadOnlyException(ChunkModeException):
    pass


class CodecException(RiffException, ValueError):
    pass


class UnrecoverableException(RiffException):
    '''The engine broke one of its own invariants: the stream is not
    to be trusted anymore.'''
    pass
