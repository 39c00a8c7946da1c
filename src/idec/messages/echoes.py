# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import re
from dataclasses import dataclass

from .exceptions import FormatError

__all__ = 'Echo', 'parse_echo_list'


_count = re.compile(r'[0-9]+', re.ASCII)


@dataclass(frozen=True, slots=True)
class Echo:
    name: str
    count: int
    description: str


def parse_echo_list(text: str, /) -> list[Echo]:
    """
    Parse the echo directory listing a node publishes as list.txt.

    Every line has the form name:count:description. The scan stops at the
    first line that has no ':' (usually the trailing empty line). Only the
    third field is used as description, so any text after a further ':'
    is dropped.
    """
    echoes = []
    for line in text.split('\n'):
        fields = line.split(':')
        if len(fields) < 2:
            break
        if len(fields) < 3:
            raise FormatError(f'Echo list entry without a description: {line!r}')
        name, count, description = fields[:3]
        if _count.fullmatch(count) is None:
            raise FormatError(f'Invalid message count for echo {name!r}: {count!r}')
        echoes.append(Echo(name=name, count=int(count), description=description))
    return echoes
