import logging
from collections import namedtuple

from .core import LIST_TAG


logger = logging.getLogger(__name__)


ChunkInfo = namedtuple('ChunkInfo', ['depth', 'tag', 'list_type', 'offset', 'length'])


def walk(riff_list, depth=0):
    '''Depth first traversal of the children of a list in reading mode.

    It yields (depth, chunk, sublist) where sublist is the chunk promoted to a
    list when tagged 'LIST', None otherwise. Don't enumerate the sublist by
    yourself: the walk is going to do that right after.'''
    with riff_list.chunks() as chunks:
        for chunk in chunks:
            sublist = chunk.as_list() if chunk.tag == LIST_TAG else None

            yield depth, chunk, sublist

            if sublist is not None:
                yield from walk(sublist, depth + 1)


def layout(riff_list):
    '''Returns a ChunkInfo for the list itself and for all its descendants'''
    result = [ChunkInfo(0, riff_list.tag, riff_list.list_type, riff_list.offset, riff_list.length)]

    for depth, chunk, sublist in walk(riff_list, depth=1):
        result.append(ChunkInfo(
            depth,
            chunk.tag,
            sublist.list_type if sublist is not None else None,
            chunk.offset,
            chunk.length,
        ))

    return result


def find_chunk(riff_list, tag):
    '''Returns the payload of the first child with the given tag, None if there isn't one'''
    with riff_list.chunks() as chunks:
        for chunk in chunks:
            if chunk.tag == tag:
                return chunk.read_all()

    logger.debug('no chunk \'%s\' in list \'%s\'' % (tag, riff_list.list_type))

    return None


def write_chunk(riff_list, tag, data):
    with riff_list.create_chunk(tag) as chunk:
        chunk.write(data)

    return chunk


def copy(source, target):
    '''Copy the children of a list in reading mode into a list in writing mode'''
    for chunk in source.chunks():
        if chunk.tag == LIST_TAG:
            sublist = chunk.as_list()
            with target.create_list(sublist.list_type) as target_sublist:
                copy(sublist, target_sublist)
        else:
            write_chunk(target, chunk.tag, chunk.read_all())
