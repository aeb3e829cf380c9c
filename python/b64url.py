#!/usr/bin/env python3
"""
Name: b64url
Description: encode and decode unpadded URL-safe base64 data
License: artistic2
"""

import sys
import os
import argparse
import base64
import binascii
import re
from contextlib import contextmanager
from enum import Enum

__version__ = "0.1.0"

EX_SUCCESS = 0
EX_FAILURE = 1

# Source designator for standard input. "-" on the command line maps to it.
STDIN = None

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
INVALID_CHAR = re.compile(r'[^A-Za-z0-9_-]')

# Bits of the last character that carry no data, keyed by len(text) % 4.
UNUSED_BITS = {2: 0b1111, 3: 0b11}


class Mode(Enum):
    ENCODE = 0
    DECODE = 1


class B64UrlError(Exception):
    """Base class for every failure reported by b64url."""


class SourceUnavailable(B64UrlError):
    """The named input file could not be opened."""
    def __init__(self, name, strerror):
        super().__init__(f"cannot open '{name}': {strerror}")
        self.filename = name
        self.strerror = strerror


class InvalidEncoding(B64UrlError, ValueError):
    """Decode input is not unpadded URL-safe base64."""


class IoFailure(B64UrlError):
    """A read or write on an already resolved stream failed."""


def encode(data):
    """
    Encodes bytes as URL-safe base64 without '=' padding.

    Args:
        data (bytes): Arbitrary input, possibly empty.

    Returns:
        str: Text drawn only from A-Z, a-z, 0-9, '-' and '_'.
    """
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('ascii')


def decode(text):
    """
    Decodes unpadded URL-safe base64 text back into bytes.

    The text must already be trimmed; any whitespace left in it is rejected
    like every other character outside the alphabet.

    Raises:
        InvalidEncoding: on a foreign character, a length of 1 mod 4, or a
            final character whose unused low bits are not zero.
    """
    bad = INVALID_CHAR.search(text)
    if bad:
        raise InvalidEncoding(f"invalid character {bad.group()!r} at offset {bad.start()}")

    remainder = len(text) % 4
    if remainder == 1:
        raise InvalidEncoding(f"invalid input length {len(text)}")
    if remainder and ALPHABET.index(text[-1]) & UNUSED_BITS[remainder]:
        raise InvalidEncoding(f"invalid last symbol {text[-1]!r} at offset {len(text) - 1}")

    try:
        return base64.urlsafe_b64decode(text + '=' * (-len(text) % 4))
    except binascii.Error as e:
        raise InvalidEncoding(str(e)) from e


def resolve_source(name):
    """Maps the '-' sentinel to standard input; other names are file paths."""
    if name is None or name == '-':
        return STDIN
    return name


@contextmanager
def open_source(name, stdin):
    """
    Yields a binary stream for the source. A named file is opened here and
    closed on exit; the injected stdin is handed out as is and left open.
    """
    if resolve_source(name) is STDIN:
        yield stdin
        return

    try:
        fh = open(name, 'rb')
    except OSError as e:
        raise SourceUnavailable(name, e.strerror or e) from e
    with fh:
        yield fh


def run(mode, source, stdin, stdout):
    """
    Reads the whole source, transforms it and writes the result to stdout.

    Encoded output is followed by a single newline. Decoded output is written
    verbatim. Nothing is written unless the transformation succeeded.
    """
    with open_source(source, stdin) as stream:
        try:
            data = stream.read()
        except OSError as e:
            raise IoFailure(f"read error: {e}") from e

    if mode is Mode.ENCODE:
        result = (encode(data) + '\n').encode('ascii')
    else:
        try:
            text = data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise InvalidEncoding(f"input is not valid UTF-8 at offset {e.start}") from e
        # Only the trailing whitespace run is tolerated.
        result = decode(text.rstrip())

    try:
        stdout.write(result)
        stdout.flush()
    except OSError as e:
        raise IoFailure(f"write error: {e}") from e


def main(argv=None):
    """Parses arguments and runs the encoding or decoding."""
    parser = argparse.ArgumentParser(
        description="Encode or decode unpadded URL-safe base64 data to standard output.",
        usage="%(prog)s [-dhV] [FILE]"
    )
    parser.add_argument(
        '-d', '--decode',
        action='store_true',
        help='decode data'
    )
    parser.add_argument(
        '-V', '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    parser.add_argument(
        'file',
        nargs='?',
        default='-',
        metavar='FILE',
        help="With no FILE, or when FILE is -, read standard input."
    )

    args = parser.parse_args(argv)
    program_name = os.path.basename(sys.argv[0])
    mode = Mode.DECODE if args.decode else Mode.ENCODE

    try:
        run(mode, resolve_source(args.file), sys.stdin.buffer, sys.stdout.buffer)
    except B64UrlError as e:
        print(f"{program_name}: {e}", file=sys.stderr)
        sys.exit(EX_FAILURE)
    except KeyboardInterrupt:
        print(file=sys.stderr)
        sys.exit(EX_FAILURE)

    sys.exit(EX_SUCCESS)

if __name__ == "__main__":
    main()
