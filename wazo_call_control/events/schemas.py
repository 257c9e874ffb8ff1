# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from datetime import timezone

from marshmallow import EXCLUDE, Schema, fields, pre_load
from marshmallow.validate import Length


class EventBaseSchema(Schema):
    class Meta:
        unknown = EXCLUDE


class EnvelopeSchema(EventBaseSchema):
    id = fields.String(required=True, validate=Length(min=1))
    event_type = fields.String(required=True, validate=Length(min=1))
    occurred_at = fields.AwareDateTime(required=True, default_timezone=timezone.utc)
    record_type = fields.String(allow_none=True)
    payload = fields.Dict(load_default=dict)

    @pre_load
    def unwrap_data(self, data, **kwargs):
        # webhooks are delivered either bare or wrapped in {"data": {...}}
        if isinstance(data, dict) and 'event_type' not in data and isinstance(data.get('data'), dict):
            return data['data']
        return data


class CallIdentitySchema(EventBaseSchema):
    call_control_id = fields.String(required=True, validate=Length(min=1))
    call_leg_id = fields.String(allow_none=True)
    call_session_id = fields.String(allow_none=True)
    connection_id = fields.String(allow_none=True)
    client_state = fields.String(allow_none=True)


class CallPayloadSchema(CallIdentitySchema):
    state = fields.String(allow_none=True)
    direction = fields.String(allow_none=True)
    from_ = fields.String(data_key='from', allow_none=True)
    to = fields.String(allow_none=True)
    start_time = fields.String(allow_none=True)
    hangup_cause = fields.String(allow_none=True)
    hangup_source = fields.String(allow_none=True)
    sip_hangup_cause = fields.String(allow_none=True)
    custom_headers = fields.List(fields.Dict(), allow_none=True)


class QueuePayloadSchema(CallIdentitySchema):
    queue = fields.String(required=True, validate=Length(min=1))
    current_position = fields.Integer(allow_none=True)
    queue_position = fields.Integer(allow_none=True)
    reason = fields.String(allow_none=True)


class MediaPayloadSchema(CallIdentitySchema):
    digit = fields.String(allow_none=True)
    digits = fields.String(allow_none=True)
    reason = fields.String(allow_none=True)
    status = fields.String(allow_none=True)
    result = fields.String(allow_none=True)
    stream_url = fields.String(allow_none=True)
    stream_type = fields.String(allow_none=True)
    media_name = fields.String(allow_none=True)
    media_url = fields.String(allow_none=True)
    overlay = fields.Boolean(allow_none=True)
    channels = fields.String(allow_none=True)
    recording_started_at = fields.String(allow_none=True)
    recording_ended_at = fields.String(allow_none=True)
    recording_urls = fields.Dict(
        keys=fields.String(),
        values=fields.String(),
        allow_none=True,
    )
    public_recording_urls = fields.Dict(
        keys=fields.String(),
        values=fields.String(),
        allow_none=True,
    )
    sip_notify_response = fields.Integer(allow_none=True)
    transcription_data = fields.Dict(allow_none=True)


class ConferencePayloadSchema(EventBaseSchema):
    conference_id = fields.String(required=True, validate=Length(min=1))
    call_control_id = fields.String(allow_none=True)
    call_leg_id = fields.String(allow_none=True)
    call_session_id = fields.String(allow_none=True)
    connection_id = fields.String(allow_none=True)
    client_state = fields.String(allow_none=True)
    name = fields.String(allow_none=True)
    reason = fields.String(allow_none=True)
    expires_at = fields.AwareDateTime(allow_none=True, default_timezone=timezone.utc)


class FaxPayloadSchema(EventBaseSchema):
    fax_id = fields.String(required=True, validate=Length(min=1))
    connection_id = fields.String(allow_none=True)
    direction = fields.String(allow_none=True)
    status = fields.String(allow_none=True)
    from_ = fields.String(data_key='from', allow_none=True)
    to = fields.String(allow_none=True)
    quality = fields.String(allow_none=True)
    store_media = fields.Boolean(allow_none=True)
    media_url = fields.String(allow_none=True)
    failure_reason = fields.String(allow_none=True)
    client_state = fields.String(allow_none=True)


envelope_schema = EnvelopeSchema()
call_payload_schema = CallPayloadSchema()
queue_payload_schema = QueuePayloadSchema()
media_payload_schema = MediaPayloadSchema()
conference_payload_schema = ConferencePayloadSchema()
fax_payload_schema = FaxPayloadSchema()
