# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

import itertools
from datetime import datetime, timedelta, timezone
from unittest import TestCase
from unittest.mock import Mock, call

from hamcrest import (
    assert_that,
    contains_inanyorder,
    equal_to,
    has_properties,
    is_,
)

from wazo_call_control.commands import Acknowledgment, Command
from wazo_call_control.events import Event
from wazo_call_control.types import (
    ConferenceEndReason,
    ConferenceStatus,
    IngestResult,
    ParticipantStatus,
    SupervisorRole,
)

from ..projector import EntityProjector

T0 = datetime(2026, 3, 1, 10, tzinfo=timezone.utc)
_event_ids = itertools.count()


def make_event(event_type, seconds=0, **payload):
    return Event.from_dict(
        {
            'id': f'conf-evt-{next(_event_ids)}',
            'event_type': event_type,
            'occurred_at': (T0 + timedelta(seconds=seconds)).isoformat(),
            'payload': payload,
        }
    )


class TestConferenceProjection(TestCase):
    def setUp(self):
        self.now = T0
        self.on_resource_ended = Mock()
        self.projector = EntityProjector(clock=lambda: self.now, on_resource_ended=self.on_resource_ended)

    def create(self, conference_id='conf-1', data=None, **params):
        command = Command('create_conference', call_control_id='call-1', name='standup', **params)
        data = dict({'id': conference_id, 'name': 'standup', 'created_at': T0.isoformat()}, **(data or {}))
        return self.projector.apply_ack(command, Acknowledgment(command, data, acknowledged_at=1))

    def ack(self, name, conference_id='conf-1', acknowledged_at=None, **params):
        command = Command(name, conference_id, **params)
        return self.projector.apply_ack(command, Acknowledgment(command, acknowledged_at=acknowledged_at))

    def participant(self, call_control_id, conference_id='conf-1'):
        return self.projector.store.get_participant(conference_id, call_control_id)

    def test_create_starts_the_conference(self):
        result = self.create()

        assert_that(result, equal_to(IngestResult.applied))
        assert_that(
            self.projector.conference('conf-1'),
            has_properties(
                status=ConferenceStatus.in_progress,
                name='standup',
                created_at=T0,
                expires_at=T0 + timedelta(minutes=240),
                creator_call_control_id='call-1',
            ),
        )
        assert_that(
            self.participant('call-1'),
            has_properties(status=ParticipantStatus.joined, on_hold=False),
        )

    def test_create_without_start_holds_the_creator(self):
        self.create(start_conference_on_create=False, duration_minutes=30)

        assert_that(
            self.projector.conference('conf-1'),
            has_properties(status=ConferenceStatus.init, expires_at=T0 + timedelta(minutes=30)),
        )
        assert_that(self.participant('call-1').on_hold, is_(True))

    def test_create_with_remote_expiry(self):
        expires_at = T0 + timedelta(hours=1)

        self.create(data={'expires_at': expires_at.isoformat(), 'status': 'init'})

        assert_that(
            self.projector.conference('conf-1'),
            has_properties(status=ConferenceStatus.init, expires_at=expires_at),
        )

    def test_create_updates_the_creator_client_state(self):
        self.projector.apply_event(make_event('call.initiated', call_control_id='call-1'))

        self.create(client_state='Y29uZg==')

        assert_that(self.projector.call('call-1').client_state, equal_to('Y29uZg=='))

    def test_join_starts_the_conference(self):
        self.create(start_conference_on_create=False)

        self.ack('join_conference', call_control_id='call-2', start_conference_on_enter=True, acknowledged_at=2)

        assert_that(self.projector.conference('conf-1').status, equal_to(ConferenceStatus.in_progress))
        assert_that(self.participant('call-1').on_hold, is_(False))
        assert_that(
            self.participant('call-2'),
            has_properties(status=ParticipantStatus.joining, on_hold=False),
        )

    def test_join_waiting_conference(self):
        self.create(start_conference_on_create=False)

        self.ack(
            'join_conference',
            call_control_id='call-2',
            mute=True,
            supervisor_role='whisper',
            whisper_call_control_ids=['call-1'],
            acknowledged_at=2,
        )

        participant = self.participant('call-2')
        assert_that(
            participant,
            has_properties(
                on_hold=True,
                muted=True,
                supervisor_role=SupervisorRole.whisper,
                whispering=True,
            ),
        )

    def test_explicit_hold_survives_the_start(self):
        self.create(start_conference_on_create=False)
        self.ack('join_conference', call_control_id='call-2', hold=True, acknowledged_at=2)

        self.ack('join_conference', call_control_id='call-3', start_conference_on_enter=True, acknowledged_at=3)

        assert_that(self.participant('call-1').on_hold, is_(False))
        assert_that(self.participant('call-2').on_hold, is_(True))

    def test_mute_and_unmute_last_write_wins(self):
        self.create()

        self.ack('unmute_participants', call_control_ids=['call-1'], acknowledged_at=3)
        self.ack('mute_participants', call_control_ids=['call-1'], acknowledged_at=2)

        assert_that(self.participant('call-1').muted, is_(False))

        self.ack('mute_participants', call_control_ids=['call-1'], acknowledged_at=4)

        assert_that(self.participant('call-1').muted, is_(True))

    def test_mute_everyone(self):
        self.create()
        self.ack('join_conference', call_control_id='call-2', acknowledged_at=2)

        self.ack('mute_participants', acknowledged_at=3)

        assert_that(
            self.projector.participants('conf-1'),
            contains_inanyorder(
                has_properties(call_control_id='call-1', muted=True),
                has_properties(call_control_id='call-2', muted=True),
            ),
        )

    def test_hold_and_mute_are_independent(self):
        self.create()

        self.ack('hold_participants', call_control_ids=['call-1'], acknowledged_at=3)
        self.ack('unmute_participants', call_control_ids=['call-1'], acknowledged_at=2)

        assert_that(self.participant('call-1'), has_properties(on_hold=True, muted=False))

    def test_update_participants(self):
        self.create()

        self.ack(
            'update_participants',
            call_control_id='call-1',
            supervisor_role='monitor',
            acknowledged_at=2,
        )

        assert_that(self.participant('call-1').supervisor_role, equal_to(SupervisorRole.monitor))

    def test_host_leaving_ends_the_conference(self):
        self.create()
        self.ack('join_conference', call_control_id='call-2', end_conference_on_exit=True, acknowledged_at=2)
        self.ack('join_conference', call_control_id='call-3', acknowledged_at=3)

        self.ack('leave_conference', call_control_id='call-2')

        assert_that(
            self.projector.conference('conf-1'),
            has_properties(status=ConferenceStatus.completed, end_reason=ConferenceEndReason.host_left),
        )
        assert_that(self.participant('call-3').status, equal_to(ParticipantStatus.left))
        self.on_resource_ended.assert_called_once_with('conf-1')
        assert_that(self.ack('mute_participants'), equal_to(IngestResult.terminal))

    def test_leave(self):
        self.create()
        self.ack('join_conference', call_control_id='call-2', acknowledged_at=2)

        self.ack('leave_conference', call_control_id='call-2')

        assert_that(self.participant('call-2').status, equal_to(ParticipantStatus.left))
        assert_that(self.projector.conference('conf-1').completed, is_(False))

    def test_participant_call_hangup(self):
        self.projector.apply_event(make_event('call.initiated', 0, call_control_id='call-2'))
        self.create()
        self.ack('join_conference', call_control_id='call-2', soft_end_conference_on_exit=True, acknowledged_at=2)

        self.projector.apply_event(make_event('call.hangup', 5, call_control_id='call-2'))

        assert_that(self.participant('call-2').status, equal_to(ParticipantStatus.left))
        assert_that(self.projector.conference('conf-1').completed, is_(True))
        self.on_resource_ended.assert_has_calls([call('conf-1'), call('call-2')])

    def test_conference_ended_event(self):
        self.create()

        result = self.projector.apply_event(
            make_event('conference.ended', 10, conference_id='conf-1', reason='ended_via_api')
        )

        assert_that(result, equal_to(IngestResult.applied))
        assert_that(
            self.projector.conference('conf-1'),
            has_properties(status=ConferenceStatus.completed, end_reason=ConferenceEndReason.ended_via_api),
        )
        late = make_event('conference.participant.joined', 11, conference_id='conf-1', call_control_id='call-9')
        assert_that(self.projector.apply_event(late), equal_to(IngestResult.terminal))

    def test_created_event_without_acknowledgment(self):
        result = self.projector.apply_event(
            make_event('conference.created', 0, conference_id='conf-2', name='retro', call_control_id='call-1')
        )

        assert_that(result, equal_to(IngestResult.applied))
        assert_that(
            self.projector.conference('conf-2'),
            has_properties(
                status=ConferenceStatus.in_progress,
                name='retro',
                expires_at=T0 + timedelta(minutes=240),
            ),
        )

    def test_orphan_participant_event(self):
        event = make_event('conference.participant.joined', conference_id='conf-9', call_control_id='call-1')

        assert_that(self.projector.apply_event(event), equal_to(IngestResult.orphan))

    def test_participant_events_are_ordered(self):
        self.create()
        self.projector.apply_event(
            make_event('conference.participant.left', 10, conference_id='conf-1', call_control_id='call-2')
        )

        result = self.projector.apply_event(
            make_event('conference.participant.joined', 5, conference_id='conf-1', call_control_id='call-2')
        )

        assert_that(result, equal_to(IngestResult.stale))
        assert_that(self.participant('call-2').status, equal_to(ParticipantStatus.left))

    def test_participant_joined_after_hangup(self):
        self.projector.apply_event(make_event('call.initiated', 0, call_control_id='call-2'))
        self.projector.apply_event(make_event('call.hangup', 1, call_control_id='call-2'))
        self.create()

        result = self.projector.apply_event(
            make_event('conference.participant.joined', 2, conference_id='conf-1', call_control_id='call-2')
        )

        assert_that(result, equal_to(IngestResult.terminal))

    def test_participant_joined_event(self):
        self.create()
        self.ack('join_conference', call_control_id='call-2', acknowledged_at=2)

        self.projector.apply_event(
            make_event(
                'conference.participant.joined',
                3,
                conference_id='conf-1',
                call_control_id='call-2',
                call_leg_id='leg-2',
            )
        )

        assert_that(
            self.participant('call-2'),
            has_properties(status=ParticipantStatus.joined, call_leg_id='leg-2'),
        )

    def test_expired_conference_completes_on_read(self):
        self.create(duration_minutes=10)
        self.now = T0 + timedelta(minutes=10)

        conference = self.projector.conference('conf-1')

        assert_that(
            conference,
            has_properties(status=ConferenceStatus.completed, end_reason=ConferenceEndReason.time_exceeded),
        )
        self.on_resource_ended.assert_called_once_with('conf-1')

    def test_participant_listing(self):
        self.create()
        self.ack('join_conference', call_control_id='call-2', acknowledged_at=2)
        command = Command('list_conference_participants', 'conf-1')

        participants = self.projector.apply_listing(
            command,
            [{'id': 'p-1', 'call_control_id': 'call-1', 'status': 'joined', 'muted': True}],
            complete=True,
        )

        assert_that(participants, contains_inanyorder(has_properties(id='p-1', muted=True)))
        assert_that(self.participant('call-2').status, equal_to(ParticipantStatus.left))

    def test_partial_participant_listing(self):
        self.create()
        self.ack('join_conference', call_control_id='call-2', acknowledged_at=2)
        command = Command('list_conference_participants', 'conf-1')

        self.projector.apply_listing(command, [{'call_control_id': 'call-1'}])

        assert_that(self.participant('call-2').status, equal_to(ParticipantStatus.joining))

    def test_conference_listing(self):
        self.create()
        command = Command('list_conferences')

        conferences = self.projector.apply_listing(
            command,
            [
                {'id': 'conf-1', 'status': 'completed', 'end_reason': 'all_left'},
                {'id': 'conf-3', 'name': 'sync', 'status': 'init'},
                {'name': 'no id'},
            ],
        )

        assert_that(
            conferences,
            contains_inanyorder(
                has_properties(id='conf-1', status=ConferenceStatus.completed, end_reason=ConferenceEndReason.all_left),
                has_properties(id='conf-3', status=ConferenceStatus.init, name='sync'),
            ),
        )
        assert_that(self.participant('call-1').status, equal_to(ParticipantStatus.left))

    def test_participant_to_dict(self):
        self.create()

        result = self.participant('call-1').to_dict()

        assert_that(
            result,
            equal_to(
                {
                    'conference_id': 'conf-1',
                    'call_control_id': 'call-1',
                    'id': None,
                    'call_leg_id': None,
                    'status': 'joined',
                    'muted': False,
                    'on_hold': False,
                    'supervisor_role': 'none',
                    'whisper_call_control_ids': [],
                    'end_conference_on_exit': False,
                    'soft_end_conference_on_exit': False,
                }
            ),
        )
