# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging
from datetime import timedelta

from marshmallow import ValidationError

from wazo_call_control.events import EventType
from wazo_call_control.types import (
    ConferenceEndReason,
    ConferenceStatus,
    IngestResult,
    ParticipantStatus,
    SupervisorRole,
)

from .models import ConferenceSnapshot, ParticipantSnapshot
from .schemas import conference_data_schema, participant_data_schema

logger = logging.getLogger(__name__)

MAX_DURATION_MINUTES = 240

# command name -> (participant field, value, last-write-wins key)
PARTICIPANT_UPDATES = {
    'mute_participants': ('muted', True, 'muted_at'),
    'unmute_participants': ('muted', False, 'muted_at'),
    'hold_participants': ('on_hold', True, 'hold_at'),
    'unhold_participants': ('on_hold', False, 'hold_at'),
}


class ConferenceProjector:
    def __init__(self, store, locks, clock, on_completed=None, max_duration_minutes=MAX_DURATION_MINUTES):
        self._store = store
        self._locks = locks
        self._clock = clock
        self._on_completed = on_completed or (lambda conference: None)
        self._max_duration = max_duration_minutes

    def _lock(self, conference_id):
        return self._locks.acquired(('conference', conference_id))

    def apply_ack(self, command, ack) -> IngestResult:
        if command.name == 'create_conference':
            return self._create(command, ack)

        conference_id = command.target_id
        completed = None
        with self._lock(conference_id):
            conference = self._store.get_conference(conference_id)
            if conference is None:
                logger.debug('conference %s created from %s acknowledgment', conference_id, command.name)
                conference = ConferenceSnapshot(conference_id, status=ConferenceStatus.unknown)
                self._store.put_conference(conference)
            elif conference.completed:
                logger.warning(
                    'ignoring %s acknowledgment: conference %s already completed',
                    command.name,
                    conference_id,
                )
                return IngestResult.terminal

            if command.name == 'join_conference':
                self._join(conference, command, ack)
            elif command.name == 'leave_conference':
                completed = self._leave(conference, command.body['call_control_id'], None)
            elif command.name in PARTICIPANT_UPDATES:
                name, value, key = PARTICIPANT_UPDATES[command.name]
                changes = {name: value}
                if name == 'on_hold':
                    changes['auto_held'] = False
                ids = command.body.get('call_control_ids')
                self._write_participants(conference_id, ids, changes, key, ack.acknowledged_at)
            elif command.name == 'update_participants':
                changes = {
                    'supervisor_role': SupervisorRole(command.body['supervisor_role']),
                    'whisper_call_control_ids': frozenset(
                        command.body.get('whisper_call_control_ids') or ()
                    ),
                }
                ids = [command.body['call_control_id']]
                self._write_participants(conference_id, ids, changes, 'role_at', ack.acknowledged_at)
            elif command.name == 'conference_record_start':
                self._store.put_conference(conference.evolve(recording=True))
            elif command.name == 'conference_record_stop':
                self._store.put_conference(conference.evolve(recording=False))
            else:
                logger.debug('%s does not change conference %s', command.name, conference_id)

        if completed is not None:
            self._on_completed(completed)
        return IngestResult.applied

    def _create(self, command, ack):
        try:
            data = conference_data_schema.load(ack.data)
        except ValidationError as e:
            logger.warning('unusable create_conference acknowledgment: %s', e.messages)
            return IngestResult.ignored

        conference_id = data['id']
        if data.get('status'):
            status = ConferenceStatus(data['status'])
        elif command.effective('start_conference_on_create'):
            status = ConferenceStatus.in_progress
        else:
            status = ConferenceStatus.init

        created_at = data.get('created_at')
        expires_at = data.get('expires_at')
        if expires_at is None:
            duration = min(command.body.get('duration_minutes', self._max_duration), self._max_duration)
            expires_at = (created_at or self._clock()) + timedelta(minutes=duration)

        creator = command.body['call_control_id']
        with self._lock(conference_id):
            conference = self._store.get_conference(conference_id) or ConferenceSnapshot(conference_id)
            if conference.completed:
                logger.warning('conference %s already completed', conference_id)
                return IngestResult.terminal
            conference = conference.evolve(
                name=data.get('name') or command.body.get('name'),
                status=status,
                connection_id=data.get('connection_id') or conference.connection_id,
                created_at=created_at or conference.created_at,
                expires_at=expires_at,
                max_participants=command.body.get('max_participants'),
                region=data.get('region'),
                creator_call_control_id=creator,
            )
            self._store.put_conference(conference)
            logger.info('conference %s created (%s)', conference_id, status)

            held = status is ConferenceStatus.init
            participant = self._store.get_participant(conference_id, creator)
            participant = (participant or ParticipantSnapshot(conference_id, creator)).evolve(
                status=ParticipantStatus.joined,
                on_hold=held,
                auto_held=held,
                hold_at=ack.acknowledged_at,
            )
            self._store.put_participant(participant)
        return IngestResult.applied

    def _join(self, conference, command, ack):
        conference_id = conference.id
        call_control_id = command.body['call_control_id']
        if conference.status is ConferenceStatus.init and command.effective('start_conference_on_enter'):
            conference = self._start(conference)

        waiting = conference.status is ConferenceStatus.init
        hold = bool(command.effective('hold'))
        participant = self._store.get_participant(conference_id, call_control_id)
        if participant is None or not participant.active:
            participant = ParticipantSnapshot(conference_id, call_control_id)
        participant = participant.evolve(
            muted=bool(command.effective('mute')),
            on_hold=hold or waiting,
            auto_held=waiting and not hold,
            supervisor_role=SupervisorRole(command.effective('supervisor_role')),
            whisper_call_control_ids=frozenset(command.body.get('whisper_call_control_ids') or ()),
            end_conference_on_exit=bool(command.effective('end_conference_on_exit')),
            soft_end_conference_on_exit=bool(command.effective('soft_end_conference_on_exit')),
            muted_at=ack.acknowledged_at,
            hold_at=ack.acknowledged_at,
            role_at=ack.acknowledged_at,
        )
        self._store.put_participant(participant)
        logger.info('participant %s joining conference %s', call_control_id, conference_id)

    def _start(self, conference):
        conference = conference.evolve(status=ConferenceStatus.in_progress)
        self._store.put_conference(conference)
        for participant in self._store.participants(conference.id):
            if participant.auto_held:
                self._store.put_participant(participant.evolve(on_hold=False, auto_held=False))
        logger.info('conference %s started', conference.id)
        return conference

    def _write_participants(self, conference_id, call_control_ids, changes, key, acknowledged_at):
        if call_control_ids:
            participants = []
            for call_control_id in call_control_ids:
                participant = self._store.get_participant(conference_id, call_control_id)
                if participant is None:
                    participant = ParticipantSnapshot(
                        conference_id, call_control_id, status=ParticipantStatus.joined
                    )
                participants.append(participant)
        else:
            participants = self._store.participants(conference_id)

        for participant in participants:
            if not participant.active:
                continue
            if acknowledged_at < getattr(participant, key):
                logger.debug(
                    'participant %s: older update of %s discarded',
                    participant.call_control_id,
                    key,
                )
                continue
            self._store.put_participant(participant.evolve(**changes, **{key: acknowledged_at}))

    def _leave(self, conference, call_control_id, occurred_at):
        '''Returns the conference when the departure ended it'''
        participant = self._store.get_participant(conference.id, call_control_id)
        if participant is None:
            participant = ParticipantSnapshot(conference.id, call_control_id)
        elif not participant.active:
            return None
        self._store.put_participant(
            participant.evolve(status=ParticipantStatus.left, status_at=occurred_at or participant.status_at)
        )
        logger.info('participant %s left conference %s', call_control_id, conference.id)

        if participant.end_conference_on_exit or participant.soft_end_conference_on_exit:
            return self._complete(conference, ConferenceEndReason.host_left)
        return None

    def _complete(self, conference, reason):
        conference = conference.evolve(status=ConferenceStatus.completed, end_reason=reason)
        self._store.put_conference(conference)
        for participant in self._store.participants(conference.id):
            if participant.active:
                self._store.put_participant(participant.evolve(status=ParticipantStatus.left))
        logger.info('conference %s completed (%s)', conference.id, reason)
        return conference

    def apply_event(self, event) -> IngestResult:
        conference_id = event.resource_id
        payload = event.payload
        completed = None
        with self._lock(conference_id):
            conference = self._store.get_conference(conference_id)
            if conference is None:
                if event.event_type is not EventType.conference_created:
                    logger.debug('dropping orphan event %s', event)
                    return IngestResult.orphan
                conference = ConferenceSnapshot(
                    conference_id,
                    name=payload.get('name'),
                    connection_id=payload.get('connection_id'),
                    created_at=event.occurred_at,
                    expires_at=payload.get('expires_at')
                    or event.occurred_at + timedelta(minutes=self._max_duration),
                    creator_call_control_id=payload.get('call_control_id'),
                )
                self._store.put_conference(conference)
                logger.info('conference %s created from event', conference_id)
                return IngestResult.applied

            if conference.completed:
                logger.warning(
                    'ignoring %s: conference %s already completed', event.raw_event_type, conference_id
                )
                return IngestResult.terminal

            if event.event_type is EventType.conference_created:
                conference = conference.evolve(
                    name=conference.name or payload.get('name'),
                    expires_at=payload.get('expires_at') or conference.expires_at,
                    status=(
                        ConferenceStatus.in_progress
                        if conference.status is ConferenceStatus.unknown
                        else conference.status
                    ),
                )
                self._store.put_conference(conference)
                return IngestResult.applied

            if event.event_type is EventType.conference_ended:
                reason = ConferenceEndReason.parse(payload.get('reason')) or ConferenceEndReason.unknown
                completed = self._complete(conference, reason)
            else:
                call_control_id = payload.get('call_control_id')
                if not call_control_id:
                    logger.debug('participant event without call_control_id: %s', event)
                    return IngestResult.ignored
                result = self._participant_event(conference, call_control_id, event)
                if isinstance(result, IngestResult):
                    return result
                completed = result

        if completed is not None:
            self._on_completed(completed)
        return IngestResult.applied

    def _participant_event(self, conference, call_control_id, event):
        participant = self._store.get_participant(conference.id, call_control_id)
        if (
            participant is not None
            and participant.status_at is not None
            and event.occurred_at < participant.status_at
        ):
            logger.debug('stale %s for participant %s', event.raw_event_type, call_control_id)
            return IngestResult.stale

        if event.event_type is EventType.conference_participant_left:
            return self._leave(conference, call_control_id, event.occurred_at)

        call = self._store.get_call(call_control_id)
        if call is not None and call.state.terminal:
            logger.warning('ignoring %s: call %s already hung up', event.raw_event_type, call_control_id)
            return IngestResult.terminal

        if participant is None:
            participant = ParticipantSnapshot(conference.id, call_control_id)
        participant = participant.evolve(
            status=ParticipantStatus.joined,
            call_leg_id=participant.call_leg_id or event.payload.get('call_leg_id'),
            status_at=event.occurred_at,
        )
        self._store.put_participant(participant)
        logger.info('participant %s joined conference %s', call_control_id, conference.id)
        return None

    def call_ended(self, call_control_id):
        for participation in self._store.participations(call_control_id):
            completed = None
            with self._lock(participation.conference_id):
                conference = self._store.get_conference(participation.conference_id)
                if conference is None or conference.completed:
                    continue
                completed = self._leave(conference, call_control_id, None)
            if completed is not None:
                self._on_completed(completed)

    def refresh(self, conference_id):
        '''Complete the conference locally once its lifetime is over'''
        completed = None
        with self._lock(conference_id):
            conference = self._store.get_conference(conference_id)
            if conference is None:
                return None
            if not conference.completed and conference.expired(self._clock()):
                completed = conference = self._complete(conference, ConferenceEndReason.time_exceeded)
        if completed is not None:
            self._on_completed(completed)
        return conference

    def refresh_all(self):
        for conference in self._store.conferences():
            self.refresh(conference.id)

    def apply_conference_listing(self, items) -> list[ConferenceSnapshot]:
        conferences = []
        for item in items:
            try:
                data = conference_data_schema.load(item)
            except ValidationError as e:
                logger.warning('skipping unusable conference listing entry: %s', e.messages)
                continue
            conferences.append(self._reconcile_conference(data))
        return conferences

    def _reconcile_conference(self, data):
        conference_id = data['id']
        completed = None
        with self._lock(conference_id):
            conference = self._store.get_conference(conference_id) or ConferenceSnapshot(conference_id)
            status = ConferenceStatus.parse(data.get('status')) or conference.status
            changes = {
                name: data[name]
                for name in ('name', 'connection_id', 'created_at', 'expires_at', 'region')
                if data.get(name) is not None
            }
            if data.get('end_reason'):
                changes['end_reason'] = ConferenceEndReason(data['end_reason'])
            if status is ConferenceStatus.completed and not conference.completed:
                conference = completed = self._complete(
                    conference.evolve(**changes),
                    changes.get('end_reason') or ConferenceEndReason.unknown,
                )
            else:
                conference = conference.evolve(status=status, **changes)
                self._store.put_conference(conference)
        if completed is not None:
            self._on_completed(completed)
        return conference

    def apply_participant_listing(self, conference_id, items, complete=False) -> list[ParticipantSnapshot]:
        '''Trust the remote listing over local memory

        With ``complete``, local participants absent from the listing left.
        '''
        participants = []
        with self._lock(conference_id):
            if self._store.get_conference(conference_id) is None:
                self._store.put_conference(ConferenceSnapshot(conference_id, status=ConferenceStatus.unknown))
            for item in items:
                try:
                    data = participant_data_schema.load(item)
                except ValidationError as e:
                    logger.warning('skipping unusable participant listing entry: %s', e.messages)
                    continue
                participant = self._store.get_participant(conference_id, data['call_control_id'])
                participant = participant or ParticipantSnapshot(conference_id, data['call_control_id'])
                changes = {
                    name: data[name]
                    for name in (
                        'id',
                        'call_leg_id',
                        'muted',
                        'on_hold',
                        'end_conference_on_exit',
                        'soft_end_conference_on_exit',
                    )
                    if data.get(name) is not None
                }
                if data.get('status'):
                    changes['status'] = ParticipantStatus(data['status'])
                if data.get('whisper_call_control_ids') is not None:
                    changes['whisper_call_control_ids'] = frozenset(data['whisper_call_control_ids'])
                participant = participant.evolve(auto_held=False, **changes)
                self._store.put_participant(participant)
                participants.append(participant)

            if complete:
                listed = {participant.call_control_id for participant in participants}
                for participant in self._store.participants(conference_id):
                    if participant.active and participant.call_control_id not in listed:
                        self._store.put_participant(participant.evolve(status=ParticipantStatus.left))
        return participants
