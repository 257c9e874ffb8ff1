# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal

from marshmallow import ValidationError

from wazo_call_control.types import RemoteValue

from . import schemas
from .exceptions import MalformedEvent

logger = logging.getLogger(__name__)

Family = Literal['call', 'queue', 'media', 'conference', 'fax', 'unknown']


class EventType(RemoteValue):
    call_initiated = 'call.initiated'
    call_answered = 'call.answered'
    call_bridged = 'call.bridged'
    call_hangup = 'call.hangup'
    call_enqueued = 'call.enqueued'
    call_dequeued = 'call.dequeued'
    call_dtmf_received = 'call.dtmf.received'
    call_gather_ended = 'call.gather.ended'
    call_fork_started = 'call.fork.started'
    call_fork_stopped = 'call.fork.stopped'
    call_playback_started = 'call.playback.started'
    call_playback_ended = 'call.playback.ended'
    call_speak_started = 'call.speak.started'
    call_speak_ended = 'call.speak.ended'
    call_recording_saved = 'call.recording.saved'
    call_recording_error = 'call.recording.error'
    call_refer_started = 'call.refer.started'
    call_refer_completed = 'call.refer.completed'
    call_refer_failed = 'call.refer.failed'
    call_transcription = 'call.transcription'
    call_machine_detection_ended = 'call.machine.detection.ended'
    call_machine_greeting_ended = 'call.machine.greeting.ended'
    call_machine_premium_detection_ended = 'call.machine.premium.detection.ended'
    call_machine_premium_greeting_ended = 'call.machine.premium.greeting.ended'
    streaming_started = 'streaming.started'
    streaming_stopped = 'streaming.stopped'
    conference_created = 'conference.created'
    conference_ended = 'conference.ended'
    conference_participant_joined = 'conference.participant.joined'
    conference_participant_left = 'conference.participant.left'
    fax_queued = 'fax.queued'
    fax_media_processing = 'fax.media.processing'
    fax_media_processed = 'fax.media.processed'
    fax_originated = 'fax.originated'
    fax_sending_started = 'fax.sending.started'
    fax_delivered = 'fax.delivered'
    fax_failed = 'fax.failed'
    fax_receiving_started = 'fax.receiving.started'
    fax_received = 'fax.received'
    unknown = 'unknown'

    @property
    def family(self) -> Family:
        if self in LIFECYCLE_EVENT_TYPES:
            return 'call'
        if self in (EventType.call_enqueued, EventType.call_dequeued):
            return 'queue'
        if self is EventType.unknown:
            return 'unknown'
        prefix = self.value.split('.', 1)[0]
        if prefix in ('conference', 'fax'):
            return prefix
        return 'media'


LIFECYCLE_EVENT_TYPES = frozenset(
    [
        EventType.call_initiated,
        EventType.call_answered,
        EventType.call_bridged,
        EventType.call_hangup,
    ]
)

_payload_schemas = {
    'call': schemas.call_payload_schema,
    'queue': schemas.queue_payload_schema,
    'media': schemas.media_payload_schema,
    'conference': schemas.conference_payload_schema,
    'fax': schemas.fax_payload_schema,
}

_resource_fields = {
    'call': 'call_control_id',
    'queue': 'call_control_id',
    'media': 'call_control_id',
    'conference': 'conference_id',
    'fax': 'fax_id',
}


class Event:
    def __init__(
        self,
        id_: str,
        event_type: EventType,
        occurred_at: datetime,
        payload: dict,
        raw_event_type: str | None = None,
        record_type: str | None = 'event',
    ):
        self.id = id_
        self.event_type = event_type
        self.raw_event_type = raw_event_type or event_type.value
        self.occurred_at = occurred_at
        self.payload = payload
        self.record_type = record_type

    def __repr__(self):
        return f'<Event {self.raw_event_type} id={self.id} resource={self.resource_id}>'

    @property
    def family(self) -> Family:
        return self.event_type.family

    @property
    def resource_id(self) -> str | None:
        field = _resource_fields.get(self.family)
        return self.payload.get(field) if field else None

    @property
    def call_control_id(self) -> str | None:
        return self.payload.get('call_control_id')

    @property
    def client_state(self) -> str | None:
        return self.payload.get('client_state')

    @classmethod
    def from_dict(cls, raw) -> Event:
        try:
            envelope = schemas.envelope_schema.load(raw)
        except ValidationError as e:
            raise MalformedEvent(_raw_id(raw), e.messages)

        event_type = EventType(envelope['event_type'])
        schema = _payload_schemas.get(event_type.family)
        if schema is None:
            payload = dict(envelope['payload'])
        else:
            try:
                payload = schema.load(envelope['payload'])
            except ValidationError as e:
                raise MalformedEvent(envelope['id'], {'payload': e.messages})

        return cls(
            envelope['id'],
            event_type,
            envelope['occurred_at'],
            payload,
            raw_event_type=envelope['event_type'],
            record_type=envelope.get('record_type'),
        )


def _raw_id(raw):
    if not isinstance(raw, dict):
        return None
    data = raw.get('data') if 'id' not in raw else raw
    if isinstance(data, dict):
        return data.get('id')
    return None
