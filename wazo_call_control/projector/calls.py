# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging

from wazo_call_control.events import EventType
from wazo_call_control.types import CallState, IngestResult

from .models import CallSnapshot

logger = logging.getLogger(__name__)

ACK_TRANSITIONS = {
    'dial': CallState.bridging,
    'answer': CallState.answered,
    'bridge': CallState.bridged,
    'hangup': CallState.hangup,
    'reject': CallState.hangup,
}

EVENT_TRANSITIONS = {
    EventType.call_answered: CallState.answered,
    EventType.call_bridged: CallState.bridged,
    EventType.call_hangup: CallState.hangup,
}

ACK_FLAGS = {
    'playback_start': {'playing': True},
    'playback_stop': {'playing': False},
    'speak': {'speaking': True},
    'fork_start': {'forking': True},
    'fork_stop': {'forking': False},
    'streaming_start': {'streaming': True},
    'streaming_stop': {'streaming': False},
    'transcription_start': {'transcribing': True},
    'transcription_stop': {'transcribing': False},
    'record_start': {'recording': True},
    'record_resume': {'recording': True},
    'record_pause': {'recording': False},
    'record_stop': {'recording': False},
    'gather': {'gathering': True},
    'gather_using_audio': {'gathering': True},
    'gather_using_speak': {'gathering': True},
    'gather_stop': {'gathering': False},
}

EVENT_FLAGS = {
    EventType.call_playback_started: {'playing': True},
    EventType.call_playback_ended: {'playing': False},
    EventType.call_speak_started: {'speaking': True},
    EventType.call_speak_ended: {'speaking': False},
    EventType.call_fork_started: {'forking': True},
    EventType.call_fork_stopped: {'forking': False},
    EventType.streaming_started: {'streaming': True},
    EventType.streaming_stopped: {'streaming': False},
    EventType.call_recording_saved: {'recording': False},
    EventType.call_recording_error: {'recording': False},
    EventType.call_gather_ended: {'gathering': False},
    EventType.call_refer_started: {'refer_status': 'started'},
    EventType.call_refer_completed: {'refer_status': 'completed'},
    EventType.call_refer_failed: {'refer_status': 'failed'},
}

IDENTITY_FIELDS = ('call_leg_id', 'call_session_id', 'connection_id')
DETAIL_FIELDS = ('direction', 'from_', 'to', 'start_time')


def _filled(call, source, names):
    changes = {}
    for name in names:
        value = source.get(name)
        if value is not None and getattr(call, name) is None:
            changes[name] = value
    return changes


def _latest(current, occurred_at):
    if current is None or occurred_at > current:
        return occurred_at
    return current


class CallProjector:
    def __init__(self, store, locks, on_hangup=None):
        self._store = store
        self._locks = locks
        self._on_hangup = on_hangup or (lambda call: None)

    def apply_ack(self, command, ack) -> IngestResult:
        if command.name == 'dial':
            call_control_id = ack.data.get('call_control_id')
            if not call_control_id:
                logger.warning('dial acknowledged without call_control_id: %s', ack.data)
                return IngestResult.ignored
        else:
            call_control_id = command.target_id

        result = self._apply_ack_to(call_control_id, command, ack)
        if result is IngestResult.applied and command.name == 'bridge':
            other = command.body.get('call_control_id')
            if other and self._store.get_call(other) is not None:
                self._transition(other, CallState.bridged)
        return result

    def _apply_ack_to(self, call_control_id, command, ack):
        with self._locks.acquired(('call', call_control_id)):
            call = self._store.get_call(call_control_id)
            if call is None:
                call = CallSnapshot(call_control_id, state=CallState.unknown)
                logger.debug('call %s created from %s acknowledgment', call_control_id, command.name)
            elif call.state.terminal:
                logger.warning(
                    'ignoring %s acknowledgment: call %s already hung up',
                    command.name,
                    call_control_id,
                )
                return IngestResult.terminal

            changes = _filled(call, ack.data, IDENTITY_FIELDS)
            if command.name == 'dial':
                changes.update(self._dial_details(call, command))
            if command.client_state is not None:
                changes['client_state'] = command.client_state
            changes.update(ACK_FLAGS.get(command.name, {}))

            target = ACK_TRANSITIONS.get(command.name)
            if target is not None and target.rank > call.state.rank:
                logger.info(
                    'call %s: %s -> %s (tentative)', call_control_id, call.state, target
                )
                changes.update(state=target, confirmed=False)
            elif call.state is CallState.unknown and command.name in ('get_call', 'list_calls'):
                if ack.data.get('is_alive', command.name == 'list_calls'):
                    changes['state'] = CallState.answered

            before = call
            call = call.evolve(**changes)
            self._store.put_call(call)

        if call.state.terminal and not before.state.terminal:
            self._on_hangup(call)
        return IngestResult.applied

    def _dial_details(self, call, command):
        to = command.body.get('to')
        if isinstance(to, list):
            to = ','.join(to)
        details = {
            'connection_id': command.body.get('connection_id'),
            'from_': command.body.get('from_'),
            'to': to,
            'direction': 'outgoing',
        }
        return _filled(call, details, details)

    def apply_listing(self, command, items) -> list[CallSnapshot]:
        calls = []
        for item in items:
            call_control_id = item.get('call_control_id')
            if not call_control_id:
                continue
            self._apply_ack_to(call_control_id, command, _Listed(item))
            calls.append(self._store.get_call(call_control_id))
        return calls

    def update_client_state(self, call_control_id, client_state):
        if client_state is None or not call_control_id:
            return
        with self._locks.acquired(('call', call_control_id)):
            call = self._store.get_call(call_control_id)
            if call is None or call.state.terminal:
                return
            self._store.put_call(call.evolve(client_state=client_state))

    def set_queue(self, call_control_id, queue, reason=None) -> bool:
        '''False when a hung up call would join ``queue``'''
        with self._locks.acquired(('call', call_control_id)):
            call = self._store.get_call(call_control_id)
            if call is None:
                return True
            if queue is not None and call.state.terminal:
                logger.debug('call %s already hung up, not joining queue %s', call_control_id, queue)
                return False
            if queue is None and call.queue is None and reason is None:
                return True
            self._store.put_call(call.evolve(queue=queue, dequeue_reason=reason))
        return True

    def _transition(self, call_control_id, target):
        with self._locks.acquired(('call', call_control_id)):
            call = self._store.get_call(call_control_id)
            if call is None or call.state.terminal or target.rank <= call.state.rank:
                return
            logger.info('call %s: %s -> %s (tentative)', call_control_id, call.state, target)
            call = call.evolve(state=target, confirmed=False)
            self._store.put_call(call)
        if call.state.terminal:
            self._on_hangup(call)

    def apply_event(self, event) -> IngestResult:
        if event.family == 'call':
            return self._apply_lifecycle(event)
        return self._apply_media(event)

    def _apply_lifecycle(self, event):
        call_control_id = event.call_control_id
        payload = event.payload
        with self._locks.acquired(('call', call_control_id)):
            call = self._store.get_call(call_control_id)
            if call is None:
                if event.event_type is not EventType.call_initiated:
                    logger.debug('dropping orphan event %s', event)
                    return IngestResult.orphan
                logger.debug('call %s created from %s', call_control_id, event.raw_event_type)
                call = CallSnapshot(call_control_id)

            if call.state.terminal:
                if event.event_type is EventType.call_hangup and not call.confirmed:
                    call = call.evolve(
                        confirmed=True,
                        hangup_cause=payload.get('hangup_cause') or call.hangup_cause,
                        hangup_source=payload.get('hangup_source') or call.hangup_source,
                        lifecycle_at=_latest(call.lifecycle_at, event.occurred_at),
                        last_event_at=_latest(call.last_event_at, event.occurred_at),
                    )
                    self._store.put_call(call)
                    logger.info('call %s: hangup confirmed', call_control_id)
                    return IngestResult.applied
                logger.warning(
                    'ignoring %s: call %s already hung up', event.raw_event_type, call_control_id
                )
                return IngestResult.terminal

            changes = _filled(call, payload, IDENTITY_FIELDS + DETAIL_FIELDS)
            if call.client_state is None and event.client_state is not None:
                changes['client_state'] = event.client_state
            changes['last_event_at'] = _latest(call.last_event_at, event.occurred_at)

            target = self._event_state(event)
            stale = (
                not target.terminal
                and call.lifecycle_at is not None
                and event.occurred_at < call.lifecycle_at
            )
            if stale:
                logger.debug('stale %s for call %s', event.raw_event_type, call_control_id)
                self._store.put_call(call.evolve(**changes))
                return IngestResult.stale

            if target.terminal:
                changes['hangup_cause'] = payload.get('hangup_cause')
                changes['hangup_source'] = payload.get('hangup_source')
            logger.info('call %s: %s -> %s', call_control_id, call.state, target)
            changes.update(state=target, confirmed=True, lifecycle_at=event.occurred_at)
            call = call.evolve(**changes)
            self._store.put_call(call)

        if call.state.terminal:
            self._on_hangup(call)
        return IngestResult.applied

    def _event_state(self, event):
        if event.event_type is EventType.call_initiated:
            state = CallState.parse(event.payload.get('state'))
            if state in (CallState.parked, CallState.bridging):
                return state
            return CallState.parked
        return EVENT_TRANSITIONS[event.event_type]

    def _apply_media(self, event):
        call_control_id = event.call_control_id
        payload = event.payload
        with self._locks.acquired(('call', call_control_id)):
            call = self._store.get_call(call_control_id)
            if call is None:
                logger.debug('dropping orphan event %s', event)
                return IngestResult.orphan

            changes = dict(EVENT_FLAGS.get(event.event_type, {}))
            changes.update(self._media_details(event.event_type, payload))
            if call.client_state is None and event.client_state is not None:
                changes['client_state'] = event.client_state
            changes['last_event_at'] = _latest(call.last_event_at, event.occurred_at)
            self._store.put_call(call.evolve(**changes))
        return IngestResult.applied

    def _media_details(self, event_type, payload):
        if event_type is EventType.call_dtmf_received:
            return {'last_dtmf': payload.get('digit')}
        if event_type is EventType.call_gather_ended:
            return {'gathered_digits': payload.get('digits'), 'gather_status': payload.get('status')}
        if event_type is EventType.call_recording_saved:
            urls = payload.get('recording_urls') or payload.get('public_recording_urls') or {}
            return {'recording_urls': tuple(sorted(urls.items()))}
        if event_type is EventType.call_transcription:
            data = payload.get('transcription_data') or {}
            return {'last_transcript': data.get('transcript')}
        if event_type in (
            EventType.call_machine_detection_ended,
            EventType.call_machine_premium_detection_ended,
        ):
            return {'machine_detection': payload.get('result')}
        if event_type in (
            EventType.call_machine_greeting_ended,
            EventType.call_machine_premium_greeting_ended,
        ):
            return {'machine_greeting': payload.get('result')}
        return {}


class _Listed:
    '''Entry of a remote call listing, folded like an acknowledgment'''

    def __init__(self, data):
        self.data = data
