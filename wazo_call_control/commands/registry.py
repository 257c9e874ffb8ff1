# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Literal, NamedTuple

from . import schemas

TargetKind = Literal['call', 'conference', 'queue', 'fax', 'connection']
ResponseKind = Literal[
    'command',
    'call',
    'calls',
    'conference',
    'conferences',
    'participants',
    'queue',
    'queue_call',
    'queue_calls',
    'fax',
]


class CommandDescriptor(NamedTuple):
    name: str
    method: str
    path: str
    schema: type
    target: TargetKind | None
    response: ResponseKind = 'command'
    scope: TargetKind | None = None
    scope_field: str | None = None


_descriptors: dict[str, CommandDescriptor] = {}


def register(name, method, path, schema, target, response='command', scope=None, scope_field=None):
    # scope: resource owning the idempotency entries when it is not the target
    _descriptors[name] = CommandDescriptor(
        name, method, path, schema, target, response, scope or target, scope_field
    )


def get(name) -> CommandDescriptor:
    return _descriptors[name]


def names():
    return sorted(_descriptors)


def _call_action(name, schema, action=None, method='POST'):
    register(name, method, f'/calls/{{id}}/actions/{action or name}', schema, 'call')


register(
    'dial', 'POST', '/calls', schemas.DialRequestSchema, None,
    response='call', scope='connection', scope_field='connection_id',
)
_call_action('answer', schemas.AnswerRequestSchema)
_call_action('bridge', schemas.BridgeRequestSchema)
_call_action('enqueue', schemas.EnqueueRequestSchema)
_call_action('fork_start', schemas.ForkingStartRequestSchema)
_call_action('fork_stop', schemas.ForkingStopRequestSchema)
_call_action('gather', schemas.GatherRequestSchema)
_call_action('gather_stop', schemas.ClientStateSchema)
_call_action('gather_using_audio', schemas.GatherUsingAudioRequestSchema)
_call_action('gather_using_speak', schemas.GatherUsingSpeakRequestSchema)
_call_action('hangup', schemas.ClientStateSchema)
_call_action('leave_queue', schemas.RemoveFromQueueRequestSchema)
_call_action('playback_start', schemas.PlayAudioRequestSchema)
_call_action('playback_stop', schemas.StopAudioRequestSchema)
_call_action('record_pause', schemas.ClientStateSchema)
_call_action('record_resume', schemas.ClientStateSchema)
_call_action('record_start', schemas.StartRecordingRequestSchema)
_call_action('record_stop', schemas.ClientStateSchema)
_call_action('refer', schemas.ReferRequestSchema)
_call_action('reject', schemas.RejectRequestSchema)
_call_action('send_dtmf', schemas.SendDtmfRequestSchema)
_call_action('speak', schemas.SpeakTextRequestSchema)
_call_action('streaming_start', schemas.StartStreamRequestSchema)
_call_action('streaming_stop', schemas.ClientStateSchema)
_call_action('transcription_start', schemas.StartTranscriptionRequestSchema)
_call_action('transcription_stop', schemas.ClientStateSchema)
_call_action('transfer', schemas.TransferRequestSchema)
_call_action('client_state_update', schemas.UpdateStateRequestSchema, method='PUT')
register('get_call', 'GET', '/calls/{id}', schemas.EmptyRequestSchema, 'call', response='call')
register(
    'list_calls', 'GET', '/connections/{id}/active_calls',
    schemas.EmptyRequestSchema, 'connection', response='calls',
)

register(
    'create_conference', 'POST', '/conferences', schemas.CreateConferenceRequestSchema, None,
    response='conference', scope='call', scope_field='call_control_id',
)
register(
    'list_conferences', 'GET', '/conferences',
    schemas.EmptyRequestSchema, None, response='conferences',
)
register(
    'list_conference_participants', 'GET', '/conferences/{id}/participants',
    schemas.EmptyRequestSchema, 'conference', response='participants',
)


def _conference_action(name, schema, action=None):
    register(name, 'POST', f'/conferences/{{id}}/actions/{action or name}', schema, 'conference')


_conference_action('dial_participant', schemas.DialParticipantRequestSchema)
_conference_action('hold_participants', schemas.HoldParticipantsRequestSchema, 'hold')
_conference_action('join_conference', schemas.JoinConferenceRequestSchema, 'join')
_conference_action('leave_conference', schemas.LeaveConferenceRequestSchema, 'leave')
_conference_action('mute_participants', schemas.ParticipantsRequestSchema, 'mute')
_conference_action('play_audio_participants', schemas.PlayAudioParticipantsRequestSchema, 'play')
_conference_action('conference_record_start', schemas.StartRecordingRequestSchema, 'record_start')
_conference_action('conference_record_stop', schemas.ClientStateSchema, 'record_stop')
_conference_action('speak_text_participants', schemas.SpeakTextParticipantsRequestSchema, 'speak')
_conference_action('stop_audio_participants', schemas.ParticipantsRequestSchema, 'stop')
_conference_action('unhold_participants', schemas.RequiredParticipantsRequestSchema, 'unhold')
_conference_action('unmute_participants', schemas.ParticipantsRequestSchema, 'unmute')
_conference_action('update_participants', schemas.UpdateParticipantsRequestSchema, 'update')

register('get_queue', 'GET', '/queues/{id}', schemas.EmptyRequestSchema, 'queue', response='queue')
register(
    'list_queue_calls', 'GET', '/queues/{id}/calls',
    schemas.EmptyRequestSchema, 'queue', response='queue_calls',
)
register(
    'get_queue_call', 'GET', '/queues/{id}/calls/{sub_id}',
    schemas.EmptyRequestSchema, 'queue', response='queue_call',
)

register(
    'send_fax', 'POST', '/faxes', schemas.SendFaxRequestSchema, None,
    response='fax', scope='connection', scope_field='connection_id',
)
register('get_fax', 'GET', '/faxes/{id}', schemas.EmptyRequestSchema, 'fax', response='fax')
register('delete_fax', 'DELETE', '/faxes/{id}', schemas.EmptyRequestSchema, 'fax')
register('cancel_fax', 'POST', '/faxes/{id}/actions/cancel', schemas.EmptyRequestSchema, 'fax')
register('refresh_fax', 'POST', '/faxes/{id}/actions/refresh', schemas.EmptyRequestSchema, 'fax')
