# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Client side of the IDEC node protocol.

   Nodes speak plain HTTP. The requests used here are:

     GET  x/features              the extensions the node supports
     GET  list.txt                the echo directory (name:count:description)
     GET  u/e/<echo>/...[/o:l]    the message id index of one or more echoes
     GET  u/m/<msgid>/...         bundled messages as <msgid>:<base64> lines
     POST u/point                 submit a point message (pauth, tmsg)

   The client only moves data between the node and the message codec.
   It does not retry failed requests.

"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from types import TracebackType
from typing import Self

import httpx

from idec.configuration import NodeConfiguration
from idec.messages import Echo, Message, PointMessage, parse_echo_list

from .exceptions import FeatureNotSupportedError, NodeError, NodeResponseError, PostError

__all__ = 'Feature', 'MessageID', 'RawMessage', 'NodeClient', 'NodeError', 'NodeResponseError', 'FeatureNotSupportedError', 'PostError'  # noqa: RUF022


log = logging.getLogger(__name__)


class StringEnum(StrEnum):
    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}.{self.name}'


class Feature(StringEnum):
    LIST_TXT = 'list.txt'
    BLACKLIST_TXT = 'blacklist.txt'
    ECHO_INDEX = 'u/e'
    MESSAGES = 'u/m'
    POINT = 'u/point'
    ECHO_COUNTS = 'x/c'
    FILE_ECHOES = 'x/file'
    FEATURES = 'x/features'


@dataclass(frozen=True, slots=True)
class MessageID:
    echo: str
    msgid: str


@dataclass(frozen=True, slots=True)
class RawMessage:
    msgid: str
    data: str

    def parse(self) -> Message:
        return Message.from_wire(self.data)


class NodeClient:
    def __init__(self, configuration: NodeConfiguration, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.configuration = configuration
        self._client = httpx.AsyncClient(base_url=configuration.url, timeout=configuration.timeout, transport=transport)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc_value: BaseException | None, traceback: TracebackType | None) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def features(self) -> frozenset[str]:
        text = await self._get(Feature.FEATURES)
        return frozenset(line.strip() for line in text.split('\n') if line.strip())

    async def echo_list(self) -> list[Echo]:
        if Feature.LIST_TXT not in await self.features():
            raise FeatureNotSupportedError(f'The node at {self.configuration.url} does not provide {Feature.LIST_TXT}')
        echoes = parse_echo_list(await self._get(Feature.LIST_TXT))
        log.debug('Received %d echoes from %s', len(echoes), self.configuration.url)
        return echoes

    async def message_ids(self, echoes: Iterable[str] | None = None) -> list[MessageID]:
        """
        Return the message ids listed in the index of the given echoes.

        If echoes is not given, the echoes from the configuration are used.
        The configured offset and limit select the part of each index that
        is returned, otherwise the whole index is fetched.
        """
        echoes = self.configuration.echoes if echoes is None else tuple(echoes)
        if not echoes:
            raise ValueError('No echoes to fetch the message index for')
        path = '/'.join((Feature.ECHO_INDEX, *echoes))
        if (index_slice := self.configuration.index_slice) is not None:
            path = f'{path}/{index_slice}'
        requested = set(echoes)
        current_echo = None
        message_ids = []
        for line in (await self._get(path)).split('\n'):
            line = line.strip()  # noqa: PLW2901
            if not line:
                continue
            if line in requested:
                current_echo = line
            elif current_echo is None:
                raise NodeResponseError(f'The echo index lists message id {line!r} before any echo name')
            else:
                message_ids.append(MessageID(echo=current_echo, msgid=line))
        log.debug('Received %d message ids for %s', len(message_ids), ', '.join(echoes))
        return message_ids

    async def raw_messages(self, ids: Iterable[MessageID | str]) -> list[RawMessage]:
        msgids = [item.msgid if isinstance(item, MessageID) else item for item in ids]
        if not msgids:
            return []
        raw_messages = []
        for line in (await self._get('/'.join((Feature.MESSAGES, *msgids)))).split('\n'):
            line = line.strip()  # noqa: PLW2901
            if not line:
                continue
            msgid, separator, data = line.partition(':')
            if not separator:
                raise NodeResponseError(f'Invalid message line in node response: {line[:40]!r}')
            raw_messages.append(RawMessage(msgid=msgid, data=data))
        log.debug('Received %d of %d requested messages', len(raw_messages), len(msgids))
        return raw_messages

    async def messages(self, ids: Iterable[MessageID | str]) -> list[tuple[str, Message]]:
        return [(raw_message.msgid, raw_message.parse()) for raw_message in await self.raw_messages(ids)]

    async def post_message(self, message: PointMessage | str, *, auth: str | None = None) -> None:
        """
        Submit a point message to the node.

        The message is either a PointMessage or an already encoded point
        message. The auth token defaults to the one in the configuration.
        """
        auth = self.configuration.auth if auth is None else auth
        if auth is None:
            raise ValueError('An auth token is required to post messages')
        data = message.to_wire() if isinstance(message, PointMessage) else message
        log.debug('POST %s%s', self.configuration.url, Feature.POINT)
        try:
            response = await self._client.post(Feature.POINT, data={'pauth': auth, 'tmsg': data})
        except httpx.HTTPError as exc:
            raise PostError(f'Posting the message failed: {exc}') from exc
        if response.status_code != httpx.codes.OK or not response.text.startswith('msg ok'):
            log.warning('The node at %s rejected the message (%d): %s', self.configuration.url, response.status_code, response.text.strip())
            raise PostError(f'The node rejected the message: {response.text.strip()}', status_code=response.status_code)

    async def _get(self, path: str) -> str:
        log.debug('GET %s%s', self.configuration.url, path)
        try:
            response = await self._client.get(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NodeResponseError(f'GET {path} failed with HTTP status {exc.response.status_code}', status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise NodeResponseError(f'GET {path} failed: {exc}') from exc
        return response.text
