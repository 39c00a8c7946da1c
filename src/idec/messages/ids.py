# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import hashlib
from binascii import b2a_base64 as base64encode

__all__ = 'MSG_ID_LENGTH', 'make_msg_id'


MSG_ID_LENGTH = 20

_path_safe = str.maketrans('+/', 'AZ')


def make_msg_id(text: str, /) -> str:
    """
    Return the network identifier of the canonical message text.

    The identifier is the base64 encoded SHA-256 digest of the text, cut
    to MSG_ID_LENGTH characters, with '+' and '/' replaced by 'A' and 'Z'
    so that it can be used in URL paths without escaping.
    """
    digest = hashlib.sha256(text.encode('utf-8')).digest()
    return base64encode(digest, newline=False).decode('ascii')[:MSG_ID_LENGTH].translate(_path_safe)
