#!/usr/bin/env python3
'''
Write to stdout (or to a file) the payload of the first chunk with the given
tag, looking into the nested lists too.

 $ riffextract.py sound.wav data samples.raw
'''
import logging
import sys
import os
from contextlib import closing

from riffstruct.file import RiffFile
from riffstruct.utils import walk


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)
logger = logging.getLogger(__name__)


def usage(progname):
    print(f'usage: {progname} <riff file path> <tag> [output path]')
    sys.exit(1)


def extract(riff, tag):
    with closing(walk(riff)) as chunks:
        for depth, chunk, sublist in chunks:
            logger.debug(f'{"  " * depth}{chunk!r}')
            if chunk.tag == tag:
                return chunk.read_all()

    return None


if __name__ == '__main__':
    if len(sys.argv) < 3:
        usage(sys.argv[0])

    path = sys.argv[1]
    tag = sys.argv[2].ljust(4)

    with RiffFile(path) as riff:
        data = extract(riff, tag)

    if data is None:
        logger.error(f'no chunk tagged {tag!r} in \'{path}\'')
        sys.exit(2)

    if len(sys.argv) > 3:
        with open(sys.argv[3], 'wb') as f:
            f.write(data)
    else:
        sys.stdout.buffer.write(data)
