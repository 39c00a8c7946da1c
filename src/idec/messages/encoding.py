# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import re
from binascii import a2b_base64 as base64decode
from binascii import b2a_base64 as base64encode
from urllib.parse import unquote

from .exceptions import DecodeError

__all__ = 'decode_text', 'encode_text', 'url_unescape'


# A '%' that does not start a valid escape sequence
_bad_escape = re.compile(r'%(?![0-9A-Fa-f]{2})')


def url_unescape(data: str, /) -> str:
    """
    Remove the URL percent-encoding from data.

    Unlike form decoding, '+' is left untouched because it is part of
    the base64 alphabet the encoded messages use.
    """
    if (match := _bad_escape.search(data)) is not None:
        raise DecodeError(f'Invalid URL escape {data[match.start():match.start() + 3]!r}')
    try:
        return unquote(data, errors='strict')
    except UnicodeDecodeError as exc:
        raise DecodeError(f'Invalid URL escaped data: {exc}') from exc


def decode_text(data: str | bytes, /) -> str:
    """Decode base64 data into UTF-8 text. Line breaks inside data are ignored."""
    if isinstance(data, str):
        data = data.replace('\r', '').replace('\n', '')
    else:
        data = data.replace(b'\r', b'').replace(b'\n', b'')
    try:
        return base64decode(data, strict_mode=True).decode('utf-8')
    except ValueError as exc:  # binascii.Error and UnicodeDecodeError
        raise DecodeError(f'Invalid base64 encoded message: {exc}') from exc


def encode_text(text: str, /) -> str:
    return base64encode(text.encode('utf-8'), newline=False).decode('ascii')
