# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging

from marshmallow import ValidationError

from wazo_call_control.events import EventType
from wazo_call_control.types import DequeueReason, IngestResult

from .models import QueuedCallSnapshot, QueueSnapshot
from .schemas import queue_call_data_schema, queue_data_schema

logger = logging.getLogger(__name__)

CALL_FIELDS = ('call_leg_id', 'call_session_id', 'connection_id', 'from_', 'to')


class QueueProjector:
    def __init__(self, store, locks, clock, calls):
        self._store = store
        self._locks = locks
        self._clock = clock
        self._calls = calls

    def _lock(self, name):
        return self._locks.acquired(('queue', name))

    def apply_ack(self, command, ack) -> IngestResult:
        if command.name == 'enqueue':
            return self._enqueue(command)
        if command.name == 'get_queue':
            self.apply_queue(command.target_id, ack.data)
        elif command.name == 'get_queue_call':
            self.apply_call_listing(command.target_id, [ack.data])
        else:
            logger.debug('%s acknowledged, waiting for call.dequeued', command.name)
        return IngestResult.applied

    def _enqueue(self, command):
        call_control_id = command.target_id
        call = self._store.get_call(call_control_id)
        if call is not None and call.state.terminal:
            return IngestResult.terminal

        name = command.body['queue_name']
        if call is not None and call.queue and call.queue != name:
            self._remove(call.queue, call_control_id)

        with self._lock(name):
            call = self._store.get_call(call_control_id)
            if call is not None and call.state.terminal:
                logger.debug('call %s hung up before joining queue %s', call_control_id, name)
                return IngestResult.terminal
            queue = self._store.get_or_create_queue(name)
            if queue.max_size is None:
                queue.max_size = command.effective('max_size')
            if call_control_id in queue.entries:
                logger.debug('call %s already in queue %s', call_control_id, name)
            else:
                entry = {
                    'call_control_id': call_control_id,
                    'enqueued_at': self._clock(),
                    'confirmed': False,
                }
                if call is not None:
                    entry.update({field: getattr(call, field) for field in CALL_FIELDS})
                queue.entries[call_control_id] = entry
                queue.renumber()
                logger.info(
                    'call %s enqueued in %s at position %s',
                    call_control_id,
                    name,
                    entry['queue_position'],
                )
        if not self._attach(name, call_control_id):
            return IngestResult.terminal
        return IngestResult.applied

    def _attach(self, name, call_control_id):
        if self._calls.set_queue(call_control_id, name):
            return True
        # hung up after joining the queue, before the call knew about it
        self._remove(name, call_control_id)
        self._calls.set_queue(call_control_id, None, DequeueReason.hangup)
        return False

    def _remove(self, name, call_control_id):
        with self._lock(name):
            queue = self._store.get_queue(name)
            if queue is None or call_control_id not in queue.entries:
                return False
            del queue.entries[call_control_id]
            queue.renumber()
        logger.info('call %s left queue %s', call_control_id, name)
        return True

    def apply_event(self, event) -> IngestResult:
        call_control_id = event.call_control_id
        name = event.payload['queue']
        call = self._store.get_call(call_control_id)

        if event.event_type is EventType.call_dequeued:
            removed = self._remove(name, call_control_id)
            if call is None and not removed:
                logger.debug('dropping orphan event %s', event)
                return IngestResult.orphan
            reason = DequeueReason.parse(event.payload.get('reason'))
            self._calls.set_queue(call_control_id, None, reason)
            return IngestResult.applied

        if call is None:
            logger.debug('dropping orphan event %s', event)
            return IngestResult.orphan
        if call.state.terminal:
            logger.warning('ignoring %s: call %s already hung up', event.raw_event_type, call_control_id)
            return IngestResult.terminal
        if call.queue and call.queue != name:
            self._remove(call.queue, call_control_id)

        with self._lock(name):
            queue = self._store.get_or_create_queue(name)
            entry = queue.entries.get(call_control_id)
            if entry is None:
                entry = {'call_control_id': call_control_id, 'enqueued_at': event.occurred_at}
                entry.update({field: getattr(call, field) for field in CALL_FIELDS})
                position = event.payload.get('current_position') or event.payload.get('queue_position')
                self._insert(queue, entry, position)
            entry['confirmed'] = True
        if not self._attach(name, call_control_id):
            return IngestResult.terminal
        return IngestResult.applied

    def _insert(self, queue, entry, position):
        items = list(queue.entries.items())
        index = len(items)
        if position is not None and 1 <= position <= len(items):
            index = position - 1
        items.insert(index, (entry['call_control_id'], entry))
        queue.entries.clear()
        queue.entries.update(items)
        queue.renumber()

    def call_ended(self, call):
        if call.queue and self._remove(call.queue, call.call_control_id):
            self._calls.set_queue(call.call_control_id, None, DequeueReason.hangup)

    def apply_queue(self, name, data):
        try:
            data = queue_data_schema.load(data)
        except ValidationError as e:
            logger.warning('unusable queue %s: %s', name, e.messages)
            return
        with self._lock(name):
            queue = self._store.get_or_create_queue(name)
            if data.get('max_size') is not None:
                queue.max_size = data['max_size']
            queue.average_wait_time_secs = data.get('average_wait_time_secs')

    def apply_call_listing(self, name, items, complete=False):
        '''Trust the remote listing over local memory

        With ``complete``, local entries absent from the listing are dropped.
        '''
        listed = []
        with self._lock(name):
            queue = self._store.get_or_create_queue(name)
            for item in items:
                try:
                    data = queue_call_data_schema.load(item)
                except ValidationError as e:
                    logger.warning('skipping unusable queue call: %s', e.messages)
                    continue
                call_control_id = data['call_control_id']
                entry = queue.entries.get(call_control_id)
                if entry is None:
                    entry = {'call_control_id': call_control_id, 'enqueued_at': self._clock()}
                    self._insert(queue, entry, data.get('queue_position'))
                entry.update({key: value for key, value in data.items() if value is not None})
                entry['confirmed'] = True
                listed.append(call_control_id)

            if complete:
                for call_control_id in [key for key in queue.entries if key not in listed]:
                    del queue.entries[call_control_id]

            ordered = sorted(queue.entries.values(), key=lambda entry: entry.get('queue_position', 0))
            queue.entries.clear()
            queue.entries.update((entry['call_control_id'], entry) for entry in ordered)
            queue.renumber()

        return [call_control_id for call_control_id in listed if self._attach(name, call_control_id)]

    def is_full(self, name):
        queue = self._store.get_queue(name)
        if queue is None or queue.max_size is None:
            return False
        with self._lock(name):
            return len(queue.entries) >= queue.max_size

    def snapshot(self, name) -> QueueSnapshot | None:
        queue = self._store.get_queue(name)
        if queue is None:
            return None
        now = self._clock()
        with self._lock(name):
            calls = tuple(
                QueuedCallSnapshot(
                    queue_name=name,
                    wait_time_secs=max(0, int((now - entry['enqueued_at']).total_seconds())),
                    **entry,
                )
                for entry in queue.entries.values()
            )
            return QueueSnapshot(
                name=name,
                max_size=queue.max_size,
                current_size=len(calls),
                average_wait_time_secs=queue.average_wait_time_secs,
                calls=calls,
            )
