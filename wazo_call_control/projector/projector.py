# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging
from datetime import datetime, timezone

from wazo_call_control.helpers.threading import KeyedLock
from wazo_call_control.types import IngestResult

from .calls import CallProjector
from .conferences import MAX_DURATION_MINUTES, ConferenceProjector
from .faxes import FaxProjector
from .queues import QueueProjector
from .store import EntityStore

logger = logging.getLogger(__name__)

CONFERENCE_CLIENT_STATE_COMMANDS = ('create_conference', 'join_conference')
QUEUE_CALL_COMMANDS = ('enqueue',)


def utcnow():
    return datetime.now(timezone.utc)


class EntityProjector:
    '''Folds acknowledgments and events into entity snapshots

    Mutations are serialized per resource; a call hanging up also leaves its
    queue and its conferences.
    '''

    def __init__(self, store=None, clock=utcnow, on_resource_ended=None,
                 max_conference_minutes=MAX_DURATION_MINUTES):
        self.store = store or EntityStore()
        self.clock = clock
        self._locks = KeyedLock('projector')
        self._on_resource_ended = on_resource_ended or (lambda resource_id: None)
        self.calls = CallProjector(self.store, self._locks, on_hangup=self._call_ended)
        self.conferences = ConferenceProjector(
            self.store,
            self._locks,
            clock,
            on_completed=self._conference_completed,
            max_duration_minutes=max_conference_minutes,
        )
        self.queues = QueueProjector(self.store, self._locks, clock, self.calls)
        self.faxes = FaxProjector(self.store, self._locks, clock)

    def _call_ended(self, call):
        logger.debug('call %s ended, releasing its queue and conferences', call.call_control_id)
        self.queues.call_ended(call)
        self.conferences.call_ended(call.call_control_id)
        self._on_resource_ended(call.call_control_id)

    def _conference_completed(self, conference):
        self._on_resource_ended(conference.id)

    def apply_ack(self, command, ack) -> IngestResult:
        descriptor = command.descriptor
        if descriptor.response in ('calls', 'conferences', 'participants', 'queue_calls'):
            self.apply_listing(command, ack.data if isinstance(ack.data, list) else [])
            return IngestResult.applied

        if command.name in ('dial', 'get_call') or descriptor.target == 'call':
            result = self.calls.apply_ack(command, ack)
            if command.name in QUEUE_CALL_COMMANDS and result is IngestResult.applied:
                result = self.queues.apply_ack(command, ack)
            return result

        if command.name == 'create_conference' or descriptor.target == 'conference':
            result = self.conferences.apply_ack(command, ack)
            if command.name in CONFERENCE_CLIENT_STATE_COMMANDS and result is IngestResult.applied:
                self.calls.update_client_state(command.body.get('call_control_id'), command.client_state)
            return result

        if descriptor.target == 'queue':
            return self.queues.apply_ack(command, ack)

        if command.name == 'send_fax' or descriptor.target == 'fax':
            return self.faxes.apply_ack(command, ack)

        logger.debug('%s acknowledged, nothing to project', command.name)
        return IngestResult.ignored

    def apply_listing(self, command, items, complete=False):
        '''Replace cached entities with a remote listing, returns snapshots'''
        response = command.descriptor.response
        if response == 'calls':
            return self.calls.apply_listing(command, items)
        if response == 'conferences':
            return self.conferences.apply_conference_listing(items)
        if response == 'participants':
            return self.conferences.apply_participant_listing(command.target_id, items, complete)
        if response == 'queue_calls':
            listed = self.queues.apply_call_listing(command.target_id, items, complete)
            snapshot = self.queues.snapshot(command.target_id)
            calls = {call.call_control_id: call for call in snapshot.calls} if snapshot else {}
            return [calls[call_control_id] for call_control_id in listed if call_control_id in calls]
        raise ValueError(f'{command.name} is not a listing')

    def apply_event(self, event) -> IngestResult:
        family = event.family
        if family in ('call', 'media'):
            return self.calls.apply_event(event)
        if family == 'queue':
            return self.queues.apply_event(event)
        if family == 'conference':
            return self.conferences.apply_event(event)
        if family == 'fax':
            return self.faxes.apply_event(event)
        logger.info('ignoring event %s of unknown type %s', event.id, event.raw_event_type)
        return IngestResult.ignored

    def call(self, call_control_id):
        return self.store.get_call(call_control_id)

    def conference(self, conference_id):
        return self.conferences.refresh(conference_id)

    def participants(self, conference_id):
        self.conferences.refresh(conference_id)
        return self.store.participants(conference_id)

    def queue(self, name):
        return self.queues.snapshot(name)

    def fax(self, fax_id):
        return self.faxes.snapshot(fax_id)

    def all_calls(self):
        return self.store.calls()

    def all_conferences(self):
        self.conferences.refresh_all()
        return self.store.conferences()

    def all_faxes(self):
        now = self.clock()
        return [fax.as_of(now) for fax in self.store.faxes()]
