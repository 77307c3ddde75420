'''
Encoding and decoding of the primitive values stored inside chunks.

All the values are little-endian regardless of the host byte order, the
format characters mimic the ones of the struct module

    b/B   signed/unsigned 8 bit integer
    h/H   signed/unsigned 16 bit integer
    i/I   signed/unsigned 32 bit integer
    q/Q   signed/unsigned 64 bit integer
    f     IEEE 754 single precision
    d     IEEE 754 double precision
    ?     boolean stored as a byte

A character is its code point encoded as an unsigned 32 bit integer and a
string is the number of characters (unsigned 32 bit) followed by the characters
themselves: no UTF-8 here, if you need another encoding convert it yourself.
'''
import logging

import bitstring

from .exceptions import CodecException


logger = logging.getLogger(__name__)


# format -> (bitstring interpretation, size in bytes)
FORMATS = {
    'b': ('intle', 1),
    'B': ('uintle', 1),
    'h': ('intle', 2),
    'H': ('uintle', 2),
    'i': ('intle', 4),
    'I': ('uintle', 4),
    'q': ('intle', 8),
    'Q': ('uintle', 8),
    'f': ('floatle', 4),
    'd': ('floatle', 8),
    '?': ('uintle', 1),
}

CHAR_SIZE = 4


def _get_format(fmt):
    try:
        return FORMATS[fmt]
    except KeyError:
        raise CodecException('\'%s\' is not a supported format' % fmt) from None


def get_size(fmt: str) -> int:
    return _get_format(fmt)[1]


def encode(fmt: str, value) -> bytes:
    interpretation, size = _get_format(fmt)

    if fmt == '?':
        value = int(bool(value))

    try:
        return bitstring.pack('%s:%d' % (interpretation, size * 8), value).bytes
    except (bitstring.CreationError, ValueError, TypeError, OverflowError) as e:
        logger.error(e)
        raise CodecException('cannot encode %r with format \'%s\'' % (value, fmt)) from e


def decode(fmt: str, raw: bytes):
    interpretation, size = _get_format(fmt)

    if len(raw) != size:
        raise CodecException('format \'%s\' needs %d bytes, got %d' % (fmt, size, len(raw)))

    value = getattr(bitstring.Bits(raw), interpretation)

    return value != 0 if fmt == '?' else value


def encode_char(char: str) -> bytes:
    if not isinstance(char, str) or len(char) != 1:
        raise CodecException('%r is not a single character' % (char,))

    return encode('I', ord(char))


def decode_char(raw: bytes) -> str:
    code_point = decode('I', raw)
    try:
        return chr(code_point)
    except (ValueError, OverflowError) as e:
        raise CodecException('0x%x is not a valid code point' % code_point) from e


def encode_chars(chars: str) -> bytes:
    return b''.join([encode_char(_) for _ in chars])


def decode_chars(raw: bytes) -> str:
    if len(raw) % CHAR_SIZE:
        raise CodecException('%d bytes are not a sequence of characters' % len(raw))

    return ''.join([decode_char(raw[_:_ + CHAR_SIZE]) for _ in range(0, len(raw), CHAR_SIZE)])


def encode_string(value: str) -> bytes:
    if not isinstance(value, str):
        raise CodecException('%r is not a string' % (value,))

    return encode('I', len(value)) + encode_chars(value)
