# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
The tag line of a bundled message.

   The first line of a bundled message holds the message tags as a list of
   '/' separated segments. It starts with the mandatory protocol marker,
   followed by an optional reference to the message this one replies to:

     ii/ok
     ii/ok/repto/<msgid>

"""

from dataclasses import dataclass
from typing import Self

from .exceptions import InvalidTagError

__all__ = 'Tags',  # noqa: COM818


@dataclass(frozen=True, slots=True)
class Tags:
    ii: str = 'ok'
    repto: str = ''

    @classmethod
    def parse(cls, line: str) -> Self:
        # The segment between ii and the repto value is not checked,
        # any tag line with 4 or more segments provides a repto.
        if 'ii/' not in line:
            raise InvalidTagError(f'Bad tag line: {line!r}')
        segments = line.split('/')
        return cls(ii=segments[1], repto=segments[3] if len(segments) >= 4 else '')

    def collect(self) -> str:
        if self.ii != 'ok':
            raise InvalidTagError(f'Cannot collect tags with ii={self.ii!r} (expected \'ok\')')
        return f'ii/ok/repto/{self.repto}' if self.repto else 'ii/ok'
