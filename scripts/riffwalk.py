#!/usr/bin/env python3
'''
Show the chunk layout of a RIFF file: offsets and sizes in order,
the lists are indented with their children.

 $ riffwalk.py sound.wav
'''
import logging
import sys
import os

from riffstruct.file import RiffFile
from riffstruct.utils import layout
from riffstruct.exceptions import RiffException


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
logger.setLevel(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)


def usage(progname):
    print(f'usage: {progname} <riff file path>')
    sys.exit(1)


def dump_layout(entries):
    print(''' Offset     Length     Tag''')
    for entry in entries:
        indent = '  ' * entry.depth
        list_type = f' ({entry.list_type})' if entry.list_type else ''
        print(f'''0x{entry.offset:08x} {entry.length:>10d} {indent}{entry.tag!r}{list_type}''')


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    filepath = sys.argv[1]

    try:
        with RiffFile(filepath) as riff:
            dump_layout(layout(riff))
    except RiffException as e:
        logger.error(f'failed to walk \'{filepath}\': {e}')
        sys.exit(2)
