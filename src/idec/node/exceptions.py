# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later


__all__ = 'NodeError', 'NodeResponseError', 'FeatureNotSupportedError', 'PostError'


class NodeError(Exception):
    """
    Base class for the errors raised while talking to a node.

    This exception's ``__cause__`` attribute will often contain the
    underlying ``httpx`` exception.

    """


class NodeResponseError(NodeError):
    """
    Raised when a node request fails or the node answers with something
    that cannot be understood.

    The ``status_code`` attribute holds the HTTP status of the response,
    or None if no response was received.

    """

    def __init__(self, description: str, *, status_code: int | None = None) -> None:
        super().__init__(description)
        self.status_code = status_code


class FeatureNotSupportedError(NodeError):
    """Raised when an operation needs a node extension the node does not list in x/features."""


class PostError(NodeResponseError):
    """Raised when the node does not accept a posted point message."""
