from enum import Enum, Flag, auto


class ChunkMode(Enum):
    '''The protocol a chunk was opened with'''
    READING = auto()
    WRITING = auto()


class Compliant(Flag):
    '''It indicates which degree of compliantness the data must reflect the format'''
    NONE    = 0
    BOUNDS  = 1 << 0
    INHERIT = 1 << 1
