# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from datetime import datetime, timezone
from unittest import TestCase

from hamcrest import assert_that, calling, equal_to, has_entries, none, raises

from ..event import Event, EventType
from ..exceptions import MalformedEvent


def raw_event(event_type, occurred_at='2026-03-01T10:00:00Z', id_='evt-1', **payload):
    return {
        'record_type': 'event',
        'id': id_,
        'event_type': event_type,
        'occurred_at': occurred_at,
        'payload': payload,
    }


class TestEvent(TestCase):
    def test_bare_envelope(self):
        event = Event.from_dict(
            raw_event('call.answered', call_control_id='call-1', client_state='c3RhdGU=')
        )

        assert_that(event.id, equal_to('evt-1'))
        assert_that(event.event_type, equal_to(EventType.call_answered))
        assert_that(event.family, equal_to('call'))
        assert_that(event.resource_id, equal_to('call-1'))
        assert_that(event.client_state, equal_to('c3RhdGU='))
        assert_that(event.occurred_at, equal_to(datetime(2026, 3, 1, 10, tzinfo=timezone.utc)))

    def test_wrapped_envelope(self):
        event = Event.from_dict({'data': raw_event('fax.queued', fax_id='fax-1')})

        assert_that(event.family, equal_to('fax'))
        assert_that(event.resource_id, equal_to('fax-1'))

    def test_from_is_renamed(self):
        event = Event.from_dict(
            raw_event('call.initiated', call_control_id='call-1', **{'from': '+1', 'to': '+2'})
        )

        assert_that(event.payload, has_entries(from_='+1', to='+2'))

    def test_families(self):
        expected = {
            'call.hangup': 'call',
            'call.enqueued': 'queue',
            'call.dequeued': 'queue',
            'call.playback.started': 'media',
            'streaming.started': 'media',
            'call.machine.premium.greeting.ended': 'media',
            'conference.participant.joined': 'conference',
            'fax.media.processed': 'fax',
        }
        for value, family in expected.items():
            assert_that(EventType(value).family, equal_to(family), value)

    def test_unknown_event_type_is_kept(self):
        event = Event.from_dict(raw_event('call.conversation.ended', call_control_id='call-1'))

        assert_that(event.event_type, equal_to(EventType.unknown))
        assert_that(event.family, equal_to('unknown'))
        assert_that(event.raw_event_type, equal_to('call.conversation.ended'))
        assert_that(event.resource_id, none())

    def test_malformed_envelope(self):
        for raw in (
            {'id': 'evt-1', 'event_type': 'call.answered'},
            {'id': 'evt-1', 'event_type': 'call.answered', 'occurred_at': 'yesterday'},
            {'event_type': 'call.answered', 'occurred_at': '2026-03-01T10:00:00Z'},
            'not an event',
        ):
            assert_that(calling(Event.from_dict).with_args(raw), raises(MalformedEvent), str(raw))

    def test_malformed_payload(self):
        raw = raw_event('call.answered', id_='evt-9', client_state='c3RhdGU=')

        assert_that(
            calling(Event.from_dict).with_args(raw),
            raises(MalformedEvent, pattern='Malformed'),
        )
        try:
            Event.from_dict(raw)
        except MalformedEvent as e:
            assert_that(e.event_id, equal_to('evt-9'))
            assert_that(e.errors, has_entries(payload=has_entries(call_control_id=[
                'Missing data for required field.'
            ])))

    def test_recording_urls_are_strings(self):
        event = Event.from_dict(
            raw_event('call.recording.saved', call_control_id='call-1', recording_urls={'mp3': 'http://a'})
        )

        assert_that(event.payload['recording_urls'], equal_to({'mp3': 'http://a'}))
        assert_that(
            calling(Event.from_dict).with_args(
                raw_event('call.recording.saved', call_control_id='call-1', recording_urls={'mp3': 42})
            ),
            raises(MalformedEvent),
        )

    def test_naive_timestamps_are_utc(self):
        event = Event.from_dict(raw_event('fax.queued', occurred_at='2026-03-01T10:00:00', fax_id='f'))

        assert_that(event.occurred_at.tzinfo, equal_to(timezone.utc))
