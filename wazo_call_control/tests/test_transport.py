# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from unittest import TestCase
from unittest.mock import Mock

import requests
from hamcrest import assert_that, calling, equal_to, has_entries, has_properties, raises

from ..commands import Command
from ..exceptions import CommandRejected, TransportError
from ..transport import HttpTransport


def response(status_code, body=None, text=None):
    result = Mock(status_code=status_code, reason='reason')
    if body is None:
        result.content = text.encode() if text else b''
        result.text = text or ''
        result.json.side_effect = ValueError('no json')
    else:
        result.content = b'{...}'
        result.json.return_value = body
    return result


class TestHttpTransport(TestCase):
    def setUp(self):
        self.session = Mock()
        self.transport = HttpTransport('https://api.example.com/v2/', token='secret', session=self.session)

    def test_execute(self):
        self.session.request.return_value = response(200, {'data': {'result': 'ok'}})
        request = Command('answer', 'call-1', client_state='c3RhdGU=').request()

        result = self.transport.execute(request)

        assert_that(result, equal_to({'data': {'result': 'ok'}}))
        self.session.request.assert_called_once_with(
            'POST',
            'https://api.example.com/v2/calls/call-1/actions/answer',
            json={'client_state': 'c3RhdGU='},
            params=None,
            headers={'Accept': 'application/json', 'Authorization': 'Bearer secret'},
            timeout=10,
            verify=True,
        )

    def test_query_params(self):
        self.session.request.return_value = response(200, {'data': []})
        request = Command('list_conferences', query=[('page[number]', '2')]).request()

        self.transport.execute(request)

        _, kwargs = self.session.request.call_args
        assert_that(kwargs, has_entries(params=[('page[number]', '2')], json=None))

    def test_empty_body(self):
        self.session.request.return_value = response(204)

        result = self.transport.execute(Command('delete_fax', 'fax-1').request())

        assert_that(result, equal_to({}))

    def test_client_errors_are_rejections(self):
        errors = [{'code': '90018', 'title': 'Call has already ended'}]
        self.session.request.return_value = response(422, {'errors': errors})

        assert_that(
            calling(self.transport.execute).with_args(Command('answer', 'call-1').request()),
            raises(CommandRejected, pattern='Call has already ended'),
        )

    def test_client_error_without_json(self):
        self.session.request.return_value = response(404, text='Not Found')

        try:
            self.transport.execute(Command('get_fax', 'fax-1').request())
        except CommandRejected as e:
            assert_that(e, has_properties(status_code=404, errors=[{'title': 'Not Found'}]))
        else:
            self.fail('CommandRejected not raised')

    def test_server_errors_leave_the_outcome_unknown(self):
        self.session.request.return_value = response(503, {'errors': []})

        assert_that(
            calling(self.transport.execute).with_args(Command('answer', 'call-1').request()),
            raises(TransportError),
        )

    def test_network_errors(self):
        self.session.request.side_effect = requests.ConnectionError('reset')

        assert_that(
            calling(self.transport.execute).with_args(Command('answer', 'call-1').request()),
            raises(TransportError),
        )

    def test_unreadable_body(self):
        self.session.request.return_value = response(200, text='<html>')

        assert_that(
            calling(self.transport.execute).with_args(Command('answer', 'call-1').request()),
            raises(TransportError),
        )

    def test_from_config(self):
        transport = HttpTransport.from_config({'base_url': 'http://localhost:9000', 'timeout': 3})

        assert_that(transport._timeout, equal_to(3))
        assert_that(transport._headers(), equal_to({'Accept': 'application/json'}))
