# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from datetime import timezone

from marshmallow import EXCLUDE, Schema, fields
from marshmallow.validate import Length


class RemoteEntitySchema(Schema):
    class Meta:
        unknown = EXCLUDE


class ConferenceDataSchema(RemoteEntitySchema):
    id = fields.String(required=True, validate=Length(min=1))
    name = fields.String(allow_none=True)
    status = fields.String(allow_none=True)
    connection_id = fields.String(allow_none=True)
    created_at = fields.AwareDateTime(allow_none=True, default_timezone=timezone.utc)
    expires_at = fields.AwareDateTime(allow_none=True, default_timezone=timezone.utc)
    end_reason = fields.String(allow_none=True)
    region = fields.String(allow_none=True)


class _ConferenceRefSchema(RemoteEntitySchema):
    id = fields.String()
    name = fields.String(allow_none=True)


class ParticipantDataSchema(RemoteEntitySchema):
    id = fields.String(allow_none=True)
    call_control_id = fields.String(required=True, validate=Length(min=1))
    call_leg_id = fields.String(allow_none=True)
    conference = fields.Nested(_ConferenceRefSchema, allow_none=True)
    status = fields.String(allow_none=True)
    muted = fields.Boolean(allow_none=True)
    on_hold = fields.Boolean(allow_none=True)
    end_conference_on_exit = fields.Boolean(allow_none=True)
    soft_end_conference_on_exit = fields.Boolean(allow_none=True)
    whisper_call_control_ids = fields.List(fields.String(), allow_none=True)


class QueueDataSchema(RemoteEntitySchema):
    name = fields.String(required=True, validate=Length(min=1))
    current_size = fields.Integer(allow_none=True)
    max_size = fields.Integer(allow_none=True)
    average_wait_time_secs = fields.Integer(allow_none=True)


class QueueCallDataSchema(RemoteEntitySchema):
    call_control_id = fields.String(required=True, validate=Length(min=1))
    call_leg_id = fields.String(allow_none=True)
    call_session_id = fields.String(allow_none=True)
    connection_id = fields.String(allow_none=True)
    enqueued_at = fields.AwareDateTime(allow_none=True, default_timezone=timezone.utc)
    from_ = fields.String(data_key='from', allow_none=True)
    to = fields.String(allow_none=True)
    queue_position = fields.Integer(allow_none=True)


class FaxDataSchema(RemoteEntitySchema):
    id = fields.String(required=True, validate=Length(min=1))
    connection_id = fields.String(allow_none=True)
    created_at = fields.String(allow_none=True)
    direction = fields.String(allow_none=True)
    from_ = fields.String(data_key='from', allow_none=True)
    to = fields.String(allow_none=True)
    media_name = fields.String(allow_none=True)
    media_url = fields.String(allow_none=True)
    quality = fields.String(allow_none=True)
    status = fields.String(allow_none=True)
    store_media = fields.Boolean(allow_none=True)
    stored_media_url = fields.String(allow_none=True)
    failure_reason = fields.String(allow_none=True)


conference_data_schema = ConferenceDataSchema()
participant_data_schema = ParticipantDataSchema()
queue_data_schema = QueueDataSchema()
queue_call_data_schema = QueueCallDataSchema()
fax_data_schema = FaxDataSchema()
