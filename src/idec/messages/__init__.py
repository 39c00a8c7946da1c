# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
IDEC message structure.

   IDEC messages are plain text. Fields have no names, the meaning of each
   line is given by its position. On the wire the text is base64 encoded.

   A point message is what a user (a point) submits to its node:

     +---+-------------------------------------------+
     | 0 | echo (the conference the message goes to) |
     | 1 | to (the recipient or "All")               |
     | 2 | subject                                   |
     | 3 | empty line                                |
     | 4 | @repto:<msgid> (only when replying)       |
     | 5 | body ...                                  |
     +---+-------------------------------------------+

   When the point message does not reply to another message, line 4 is
   the first line of the body. Point messages may also arrive URL-escaped
   as they are posted as form data.

   A bundled message is the canonical form stored and exchanged by nodes,
   to which the node adds the tags, the timestamp and the author identity:

     +---+-------------------------------------------+
     | 0 | tags (ii/ok or ii/ok/repto/<msgid>)       |
     | 1 | echo                                      |
     | 2 | timestamp (Unix time in seconds)          |
     | 3 | from (the author)                         |
     | 4 | address (the origin node/station)         |
     | 5 | to                                        |
     | 6 | subject                                   |
     | 7 | empty line                                |
     | 8 | body ...                                  |
     +---+-------------------------------------------+

   The identifier of a bundled message is computed from its canonical
   text (see ids.make_msg_id) and is what other messages reference in
   their repto field.

   In both layouts the body starts with a newline, which is an artifact
   of how the body lines are joined and is part of the canonical body.

"""

import re
import time
from dataclasses import dataclass, field
from typing import Self

from .echoes import Echo, parse_echo_list
from .encoding import decode_text, encode_text, url_unescape
from .exceptions import DecodeError, FormatError, InvalidTagError, MalformedMessageError, MessageError, TimestampError, ValidationError
from .ids import MSG_ID_LENGTH, make_msg_id
from .tags import Tags

__all__ = (  # noqa: RUF022
    # Messages
    'PointMessage',
    'Message',
    'Tags',
    'Echo',

    # Exceptions
    'MessageError',
    'DecodeError',
    'MalformedMessageError',
    'TimestampError',
    'InvalidTagError',
    'ValidationError',
    'FormatError',

    # Helpers
    'MSG_ID_LENGTH',
    'REPTO_MARKER',
    'make_msg_id',
    'parse_echo_list',
    'parse_repto_field',
)


REPTO_MARKER = '@repto:'

_timestamp = re.compile(r'[+-]?[0-9]+', re.ASCII)


@dataclass(kw_only=True, slots=True)
class PointMessage:
    echo: str
    to: str
    subject: str
    empty_line: str = ''
    repto: str = ''
    body: str

    def __str__(self) -> str:
        return '\n'.join((self.echo, self.to, self.subject, '', self.repto, self.body))

    @classmethod
    def from_wire(cls, data: str) -> Self:
        lines = decode_text(url_unescape(data)).split('\n')
        if len(lines) < 6:
            raise MalformedMessageError('bad message')
        body = '\n' + '\n'.join(lines[5:])
        if lines[4].strip().startswith(REPTO_MARKER):
            repto = parse_repto_field(lines[4])
        else:
            repto = ''
            body = f'{lines[4]}\n{body}'
        return cls(echo=lines[0].strip(' '), to=lines[1], subject=lines[2], empty_line=lines[3], repto=repto, body=body)

    def to_wire(self) -> str:
        """Encode the message the way a point submits it to its node"""
        lines = [self.echo, self.to, self.subject, '']
        if self.repto:
            lines.append(f'{REPTO_MARKER}{self.repto}')
        lines.append(self.body.removeprefix('\n'))
        return encode_text('\n'.join(lines))

    def validate(self) -> None:
        """Raise ValidationError for the first field that is not valid"""
        if not self.echo:
            raise ValidationError('echo', 'Wrong Echo name')
        if not self.to:
            raise ValidationError('to', '`To\' field is empty')
        if not self.subject:
            raise ValidationError('subject', '`Subg\' field is empty')
        if self.empty_line:
            raise ValidationError('empty_line', 'EmptyLine is not empty')
        if self.repto and len(self.repto) != MSG_ID_LENGTH:
            raise ValidationError('repto', 'Wrong @repto field length')
        if not self.body:
            raise ValidationError('body', '`Body\' field is empty')


@dataclass(kw_only=True, slots=True)
class Message:
    tags: Tags = field(default_factory=Tags)
    echo: str
    timestamp: int
    sender: str = ''
    address: str = ''
    to: str
    subject: str
    body: str

    def __post_init__(self) -> None:
        # A non-empty body starts with a newline, which stands for the empty
        # line 7 in the canonical text.
        if self.body and not self.body.startswith('\n'):
            self.body = '\n' + self.body

    @property
    def repto(self) -> str:
        return self.tags.repto

    @property
    def msgid(self) -> str:
        return make_msg_id(self.to_string())

    @classmethod
    def from_wire(cls, data: str | bytes) -> Self:
        lines = decode_text(data).split('\n')
        if len(lines) < 7:
            raise MalformedMessageError(f'bad message: expected at least 7 lines, got {len(lines)}')
        fields = {
            'tags': Tags.parse(lines[0]),
            'echo': lines[1],
            'sender': lines[3],
            'address': lines[4],
            'to': lines[5],
            'subject': lines[6],
            'body': ''.join(f'\n{line}' for line in lines[8:]),
        }
        if _timestamp.fullmatch(lines[2]) is None:
            raise TimestampError(f'Invalid message timestamp: {lines[2]!r}', message=cls(timestamp=0, **fields))
        return cls(timestamp=int(lines[2]), **fields)

    @classmethod
    def from_point_message(cls, point_message: PointMessage, *, timestamp: int | None = None) -> Self:
        """
        Compose a bundled message from a point message.

        The sender and address are left empty, as they are only known to
        the node that accepts the message and have to be filled in later.
        """
        tag_line = 'ii/ok'
        if point_message.repto:
            tag_line += f'/repto/{point_message.repto}'
        return cls(
            tags=Tags.parse(tag_line),
            echo=point_message.echo,
            timestamp=int(time.time()) if timestamp is None else timestamp,
            to=point_message.to,
            subject=point_message.subject,
            body=point_message.body,
        )

    def to_string(self) -> str:
        header = (self.tags.collect(), self.echo, str(self.timestamp), self.sender, self.address, self.to, self.subject)
        return '\n'.join(header) + '\n' + self.body

    def to_wire(self) -> str:
        return encode_text(self.to_string())


# Helpers

def parse_repto_field(value: str, /) -> str:
    """Return the message id from a '@repto:<msgid>' point message line"""
    return value.strip().removeprefix(REPTO_MARKER)
