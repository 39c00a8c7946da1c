# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import unittest
from collections.abc import Callable
from typing import TypeAlias
from urllib.parse import parse_qs

import httpx

from idec.configuration import NodeConfiguration
from idec.messages import DecodeError, Echo, Message, PointMessage
from idec.node import Feature, FeatureNotSupportedError, MessageID, NodeClient, NodeResponseError, PostError, RawMessage

Handler: TypeAlias = Callable[[httpx.Request], httpx.Response]


MESSAGE_INDEX = """\
ii.test.14
hXzRNEzmMuzKkT1HCxUb
JN3ylpxjaNofxgPy6NhL
xF3kkmrZYld330BO7qaA
3uS3uij0Y4AUnSxhf4WB
zi9YpQGddLW5WQKi9GMf"""

RAW_MESSAGES = """\
hXzRNEzmMuzKkT1HCxUb:aWkvb2svcmVwdG8vSk4zeWxweGphTm9meGdQeTZOaEwKaWkudGVzdC4xNAoxNTUxNjk5NjE0CkRpZnJleApkeW5hbWljLDEKRGlmcmV4ClJlOiBpZGVjCgpzZGZnc2ZkZyBzZGdmCgpmZGcgc2dmIHMKCmZkZyBzZGZnIHMKc2RmZyBzZGZnIHMKCgoKc2ZkZ2dnZ2dnZ2dnZ2dnZ2dnZ2dnZ2dnZ2dnZ2dnZ2dnZ2dnZ2dnZ2dnZ2dnZ2dn
JN3ylpxjaNofxgPy6NhL:aWkvb2svcmVwdG8veEYza2ttclpZbGQzMzBCTzdxYUEKaWkudGVzdC4xNAoxNTUxNjk5NTk1CkRpZnJleApkeW5hbWljLDEKRGlmcmV4ClJlOiBpZGVjCgpKS0hKS0hLSlNGSCBscwo9PT0gZHMKc2RmZyBzZGZnCmdmc2QgZGZnc2dmIGYKPT09PQpzaCAtYyAnZWNobyBPSycKPT09PQ=="""

ECHO_LIST = """\
bash.rss:14573:RSS с сайта bash.im
creepy.14:334:Страшные истории
develop.16:402:Обсуждение вопросов программирования
file.wishes:10:Поиск файлов"""


class TestNodeClient(unittest.IsolatedAsyncioTestCase):

    def setUp(self) -> None:
        self.configuration = NodeConfiguration(url='http://localhost/idec/', echoes=('ii.test.14',), auth='auth')
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Handler] = {}

    def route(self, method: str, path: str, status_code: int = 200, text: str = '') -> None:
        self.routes[method, path] = lambda _request: httpx.Response(status_code, text=text)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        try:
            handler = self.routes[request.method, request.url.path]
        except KeyError:
            return httpx.Response(404, text='not found')
        return handler(request)

    def client(self, configuration: NodeConfiguration | None = None) -> NodeClient:
        return NodeClient(configuration or self.configuration, transport=httpx.MockTransport(self._handle))

    async def test_features(self) -> None:
        self.route('GET', '/idec/x/features', text='list.txt\nu/e\nu/m\nx/c\n')
        async with self.client() as client:
            features = await client.features()
        assert features == {'list.txt', 'u/e', 'u/m', 'x/c'}
        assert Feature.LIST_TXT in features
        assert Feature.POINT not in features

    async def test_message_ids(self) -> None:
        configuration = NodeConfiguration(url='http://localhost/idec/', echoes=('ii.test.14',), offset=-5, limit=5)
        self.route('GET', '/idec/u/e/ii.test.14/-5:5', text=MESSAGE_INDEX)
        async with self.client(configuration) as client:
            message_ids = await client.message_ids()
        assert len(message_ids) == 5
        assert message_ids[0] == MessageID(echo='ii.test.14', msgid='hXzRNEzmMuzKkT1HCxUb')
        assert all(message_id.echo == 'ii.test.14' for message_id in message_ids)

    async def test_all_message_ids(self) -> None:
        self.route('GET', '/idec/u/e/ii.test.14/pipe.2032', text=MESSAGE_INDEX + '\npipe.2032\nJc0StQZltt2EoHV9fLee\n')
        async with self.client() as client:
            message_ids = await client.message_ids(['ii.test.14', 'pipe.2032'])
        assert len(message_ids) == 6
        assert message_ids[-1] == MessageID(echo='pipe.2032', msgid='Jc0StQZltt2EoHV9fLee')

    async def test_message_ids_errors(self) -> None:
        self.route('GET', '/idec/u/e/ii.test.14', text='hXzRNEzmMuzKkT1HCxUb\n')
        async with self.client() as client:
            with self.assertRaises(NodeResponseError):
                await client.message_ids()
            with self.assertRaises(ValueError):
                await client.message_ids([])
            with self.assertRaises(NodeResponseError) as context:
                await client.message_ids(['missing.echo'])
            assert context.exception.status_code == 404

    async def test_raw_messages(self) -> None:
        self.route('GET', '/idec/u/m/hXzRNEzmMuzKkT1HCxUb/JN3ylpxjaNofxgPy6NhL', text=RAW_MESSAGES)
        ids = [MessageID('ii.test.14', 'hXzRNEzmMuzKkT1HCxUb'), MessageID('ii.test.14', 'JN3ylpxjaNofxgPy6NhL')]
        async with self.client() as client:
            raw_messages = await client.raw_messages(ids)
            assert await client.raw_messages([]) == []
        assert [raw_message.msgid for raw_message in raw_messages] == ['hXzRNEzmMuzKkT1HCxUb', 'JN3ylpxjaNofxgPy6NhL']
        assert isinstance(raw_messages[0], RawMessage)
        assert raw_messages[1].parse().echo == 'ii.test.14'

    async def test_messages(self) -> None:
        self.route('GET', '/idec/u/m/hXzRNEzmMuzKkT1HCxUb/JN3ylpxjaNofxgPy6NhL', text=RAW_MESSAGES)
        async with self.client() as client:
            messages = await client.messages(['hXzRNEzmMuzKkT1HCxUb', 'JN3ylpxjaNofxgPy6NhL'])
        msgid, message = messages[1]
        assert msgid == 'JN3ylpxjaNofxgPy6NhL'
        assert isinstance(message, Message)
        assert message.repto == 'xF3kkmrZYld330BO7qaA'
        assert message.timestamp == 1551699595
        assert message.sender == 'Difrex'

    async def test_messages_errors(self) -> None:
        self.route('GET', '/idec/u/m/hXzRNEzmMuzKkT1HCxUb', text='hXzRNEzmMuzKkT1HCxUb:BlaBlaBla')
        self.route('GET', '/idec/u/m/JN3ylpxjaNofxgPy6NhL', text='garbage without separator')
        async with self.client() as client:
            with self.assertRaises(DecodeError):
                await client.messages(['hXzRNEzmMuzKkT1HCxUb'])
            with self.assertRaises(NodeResponseError):
                await client.raw_messages(['JN3ylpxjaNofxgPy6NhL'])

    async def test_echo_list(self) -> None:
        self.route('GET', '/idec/x/features', text='list.txt\nu/e\nu/m\nx/c')
        self.route('GET', '/idec/list.txt', text=ECHO_LIST)
        async with self.client() as client:
            echoes = await client.echo_list()
        assert len(echoes) == 4
        assert echoes[0] == Echo(name='bash.rss', count=14573, description='RSS с сайта bash.im')

        self.route('GET', '/idec/x/features', text='u/e\nu/m\nx/c')
        async with self.client() as client:
            with self.assertRaises(FeatureNotSupportedError):
                await client.echo_list()

    async def test_post_message(self) -> None:
        self.route('POST', '/idec/u/point', text='msg ok:Jc0StQZltt2EoHV9fLee')
        point_message = PointMessage(echo='ii.test.14', to='All', subject='Test message', repto='hXzRNEzmMuzKkT1HCxUb', body='\nThis is a message body.')
        async with self.client() as client:
            await client.post_message(point_message)
            await client.post_message('aWkudGVzdC4xNA==', auth='other')

        form = parse_qs(self.requests[0].content.decode('ascii'))
        assert form['pauth'] == ['auth']
        assert PointMessage.from_wire(form['tmsg'][0]) == point_message
        assert parse_qs(self.requests[1].content.decode('ascii'))['pauth'] == ['other']

    async def test_post_message_errors(self) -> None:
        self.route('POST', '/idec/u/point', status_code=403, text='error: wrong authstring')
        async with self.client() as client:
            with self.assertRaises(PostError) as context:
                await client.post_message('aWkudGVzdC4xNA==')
            assert context.exception.status_code == 403

        self.route('POST', '/idec/u/point', text='error: msg big!')
        async with self.client() as client:
            with self.assertRaises(PostError):
                await client.post_message('aWkudGVzdC4xNA==')

        async with self.client(NodeConfiguration(url='http://localhost/idec/')) as client:
            with self.assertRaises(ValueError):
                await client.post_message('aWkudGVzdC4xNA==')

    async def test_transport_errors(self) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('connection refused', request=request)

        self.routes['GET', '/idec/x/features'] = fail
        self.routes['POST', '/idec/u/point'] = fail
        async with self.client() as client:
            with self.assertRaises(NodeResponseError) as context:
                await client.features()
            assert context.exception.status_code is None
            assert isinstance(context.exception.__cause__, httpx.ConnectError)
            with self.assertRaises(PostError):
                await client.post_message('aWkudGVzdC4xNA==')
