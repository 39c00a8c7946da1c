# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from . import Message

__all__ = 'MessageError', 'DecodeError', 'MalformedMessageError', 'TimestampError', 'InvalidTagError', 'ValidationError', 'FormatError'  # noqa: RUF022


class MessageError(ValueError):
    """Base class for the errors raised while handling IDEC messages."""


class DecodeError(MessageError):
    """Raised when a blob is not valid URL-escaped / base64 encoded UTF-8 text."""


class MalformedMessageError(MessageError):
    """Raised when a message has fewer lines than its layout requires."""


class TimestampError(MessageError):
    """
    Raised when the timestamp line of a bundled message is not an integer.

    The ``message`` attribute holds the message as it was populated from
    the remaining lines. It is provided for diagnostics only and must not
    be used as a valid message.

    """

    def __init__(self, description: str, *, message: 'Message | None' = None) -> None:
        super().__init__(description)
        self.message = message


class InvalidTagError(MessageError):
    """Raised when a tag line lacks the ``ii/`` marker or is not ``ii/ok``."""


class ValidationError(MessageError):
    """Raised when a point message field fails validation. ``field`` names the field."""

    def __init__(self, field: str, description: str) -> None:
        super().__init__(description)
        self.field = field


class FormatError(MessageError):
    """Raised when an echo list entry is malformed."""
