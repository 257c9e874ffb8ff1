# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from unittest import TestCase

from hamcrest import (
    assert_that,
    calling,
    contains_inanyorder,
    equal_to,
    has_entries,
    has_key,
    is_,
    none,
    not_,
    raises,
)

from .. import registry
from ..command import Acknowledgment, Command
from ..exceptions import InvalidCommand, MissingTarget, UnknownCommand


class TestCommand(TestCase):
    def test_unknown_command(self):
        assert_that(calling(Command).with_args('teleport', 'call-1'), raises(UnknownCommand))

    def test_missing_target(self):
        assert_that(calling(Command).with_args('answer'), raises(MissingTarget))
        assert_that(
            calling(Command).with_args('get_queue_call', 'support'),
            raises(MissingTarget),
        )

    def test_invalid_body(self):
        assert_that(
            calling(Command).with_args('reject', 'call-1', cause='NOT_A_CAUSE'),
            raises(InvalidCommand),
        )
        assert_that(
            calling(Command).with_args('send_dtmf', 'call-1', digits='12x'),
            raises(InvalidCommand),
        )

    def test_absent_fields_stay_absent(self):
        command = Command('playback_start', 'call-1', audio_url='http://audio')

        assert_that(command.body, equal_to({'audio_url': 'http://audio'}))
        assert_that(command.request().body, not_(has_key('loop')))

    def test_effective_falls_back_to_platform_defaults(self):
        command = Command('playback_start', 'call-1', audio_url='http://audio', loop=3)

        assert_that(command.effective('loop'), equal_to(3))
        assert_that(command.effective('cache_audio'), is_(True))
        assert_that(command.effective('unheard_of'), none())

    def test_from_is_renamed_on_the_wire(self):
        command = Command(
            'dial',
            from_='+18005550100',
            to='+18005550199',
            connection_id='conn-1',
            command_id='cmd-1',
        )

        assert_that(command.body['from_'], equal_to('+18005550100'))
        assert_that(
            command.request().body,
            has_entries({'from': '+18005550100', 'to': '+18005550199'}),
        )

    def test_exclusive_media(self):
        assert_that(
            calling(Command).with_args(
                'playback_start', 'call-1', audio_url='http://a', media_name='greeting'
            ),
            raises(InvalidCommand),
        )
        assert_that(
            calling(Command).with_args('playback_start', 'call-1'),
            raises(InvalidCommand),
        )

    def test_playback_loop(self):
        Command('playback_start', 'call-1', audio_url='http://a', loop='infinity')

        for loop in (0, 'forever', True):
            assert_that(
                calling(Command).with_args('playback_start', 'call-1', audio_url='http://a', loop=loop),
                raises(InvalidCommand),
                str(loop),
            )

    def test_gather_digit_bounds(self):
        assert_that(
            calling(Command).with_args('gather', 'call-1', minimum_digits=5, maximum_digits=2),
            raises(InvalidCommand),
        )

    def test_fork_requires_target_or_rx_tx(self):
        Command('fork_start', 'call-1', rx='udp:a', tx='udp:b')

        assert_that(
            calling(Command).with_args('fork_start', 'call-1', rx='udp:a'),
            raises(InvalidCommand),
        )

    def test_send_fax_media(self):
        params = {'connection_id': 'conn-1', 'from_': '+1', 'to': '+2'}

        assert_that(calling(Command).with_args('send_fax', **params), raises(InvalidCommand))
        assert_that(
            calling(Command).with_args('send_fax', media_name='doc', store_media=True, **params),
            raises(InvalidCommand),
        )

    def test_request_path(self):
        command = Command('get_queue_call', 'support line', sub_id='call/1')

        request = command.request()

        assert_that(request.method, equal_to('GET'))
        assert_that(request.path, equal_to('/queues/support%20line/calls/call%2F1'))
        assert_that(request.body, none())
        assert_that(request.name, equal_to('get_queue_call'))

    def test_action_paths(self):
        expected = {
            ('answer', 'call-1'): ('POST', '/calls/call-1/actions/answer'),
            ('client_state_update', 'call-1'): ('PUT', '/calls/call-1/actions/client_state_update'),
            ('cancel_fax', 'fax-1'): ('POST', '/faxes/fax-1/actions/cancel'),
            ('delete_fax', 'fax-1'): ('DELETE', '/faxes/fax-1'),
        }
        params = {'client_state_update': {'client_state': 'c3RhdGU='}}
        for (name, target), (method, path) in expected.items():
            request = Command(name, target, **params.get(name, {})).request()
            assert_that((request.method, request.path), equal_to((method, path)), name)

    def test_mute_targets_every_participant_by_default(self):
        command = Command('mute_participants', 'conf-1')

        assert_that(command.request().path, equal_to('/conferences/conf-1/actions/mute'))
        assert_that(command.request().body, equal_to({}))

    def test_resource_id(self):
        answer = Command('answer', 'call-1', command_id='cmd-1')
        dial = Command('dial', from_='+1', to='+2', connection_id='conn-1', command_id='cmd-1')
        create = Command('create_conference', call_control_id='call-1', name='standup')

        assert_that(answer.resource_id, equal_to('call-1'))
        assert_that(answer.scope, equal_to('call'))
        assert_that(dial.resource_id, equal_to('conn-1'))
        assert_that(dial.scope, equal_to('connection'))
        assert_that(create.resource_id, equal_to('call-1'))
        assert_that(create.scope, equal_to('call'))

    def test_name_is_a_body_field(self):
        command = Command('create_conference', call_control_id='call-1', name='standup')

        assert_that(command.name, equal_to('create_conference'))
        assert_that(
            command.request().body,
            has_entries(call_control_id='call-1', name='standup'),
        )

    def test_query_is_passed_through(self):
        command = Command('list_conferences', query=[('page[number]', '2')])

        assert_that(command.request().query, equal_to([('page[number]', '2')]))


class TestRegistry(TestCase):
    def test_every_command_has_a_unique_route(self):
        routes = [
            (registry.get(name).method, registry.get(name).path) for name in registry.names()
        ]

        assert_that(len(set(routes)), equal_to(len(routes)))

    def test_listing_responses(self):
        responses = {name: registry.get(name).response for name in registry.names()}

        assert_that(
            [name for name, response in responses.items() if response.endswith('s') and response != 'command'],
            contains_inanyorder(
                'list_calls',
                'list_conferences',
                'list_conference_participants',
                'list_queue_calls',
            ),
        )


class TestAcknowledgment(TestCase):
    def setUp(self):
        self.command = Command('answer', 'call-1')

    def test_from_response_unwraps_data(self):
        ack = Acknowledgment.from_response(self.command, {'data': {'result': 'ok'}})

        assert_that(ack.ok, is_(True))
        assert_that(ack.data, equal_to({'result': 'ok'}))
        assert_that(ack.meta, equal_to({}))

    def test_from_response_listing(self):
        meta = {'total_pages': 1, 'page_number': 1}
        ack = Acknowledgment.from_response(self.command, {'data': [{'id': 'a'}], 'meta': meta})

        assert_that(ack.data, equal_to([{'id': 'a'}]))
        assert_that(ack.meta, equal_to(meta))
        assert_that(ack.ok, is_(True))

    def test_from_response_without_envelope(self):
        ack = Acknowledgment.from_response(self.command, {'result': 'failed'})

        assert_that(ack.ok, is_(False))

    def test_empty_response(self):
        ack = Acknowledgment.from_response(self.command, None)

        assert_that(ack.data, equal_to({}))
        assert_that(ack.ok, is_(True))

    def test_acknowledged_at_is_increasing(self):
        first = Acknowledgment(self.command)
        second = Acknowledgment(self.command)

        assert_that(second.acknowledged_at >= first.acknowledged_at, is_(True))
