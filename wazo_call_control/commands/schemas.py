# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from marshmallow import EXCLUDE, Schema, fields, validates_schema
from marshmallow.exceptions import ValidationError
from marshmallow.validate import Length, OneOf, Range, Regexp

from wazo_call_control.helpers.mallow import OneOrMany

BEEP_MODES = ['always', 'never', 'on_enter', 'on_exit']
STREAM_TRACKS = ['inbound_track', 'outbound_track', 'both_tracks']
STREAM_TYPES = ['raw', 'decrypted']
SUPERVISOR_ROLES = ['barge', 'monitor', 'none', 'whisper']
WEBHOOK_METHODS = ['POST', 'GET']
RECORDING_CHANNELS = ['single', 'dual']
RECORDING_FORMATS = ['wav', 'mp3']
AMD_MODES = ['detect', 'detect_beep', 'detect_words', 'greeting_end', 'disabled']
FAX_QUALITIES = ['normal', 'high', 'very_high']
DTMF = Regexp(r'^[0-9A-Da-dwW*#]+$')


class CommandBaseSchema(Schema):
    '''Request body of a command

    Fields that are absent stay absent: the platform applies its own default.
    Those defaults are listed in ``platform_defaults`` for local reasoning only.
    '''

    platform_defaults = {}

    class Meta:
        unknown = EXCLUDE


class ClientStateSchema(CommandBaseSchema):
    client_state = fields.String()
    command_id = fields.String(validate=Length(min=1))


class _ExclusiveMediaMixin:
    _exclusive_media = ('audio_url', 'media_name')

    @validates_schema
    def validate_exclusive_media(self, data, **kwargs):
        present = [name for name in self._exclusive_media if data.get(name)]
        if len(present) > 1:
            raise ValidationError(f'{" and ".join(present)} cannot be used together')


class SipHeaderSchema(CommandBaseSchema):
    name = fields.String(required=True, validate=Length(min=1))
    value = fields.String(required=True)


class SoundModificationsSchema(CommandBaseSchema):
    pitch = fields.Float()
    semitone = fields.Float()
    octaves = fields.Float()
    track = fields.String()


class DialogflowConfigSchema(CommandBaseSchema):
    analyze_sentiment = fields.Boolean()
    partial_automated_agent_reply = fields.Boolean()


class AnsweringMachineDetectionConfigSchema(CommandBaseSchema):
    total_analysis_time_millis = fields.Integer(validate=Range(min=0))
    after_greeting_silence_millis = fields.Integer(validate=Range(min=0))
    between_words_silence_millis = fields.Integer(validate=Range(min=0))
    greeting_duration_millis = fields.Integer(validate=Range(min=0))
    initial_silence_millis = fields.Integer(validate=Range(min=0))
    maximum_number_of_words = fields.Integer(validate=Range(min=0))
    maximum_word_length_millis = fields.Integer(validate=Range(min=0))
    silence_threshold = fields.Integer(validate=Range(min=0))
    greeting_total_analysis_time_millis = fields.Integer(validate=Range(min=0))
    greeting_silence_duration_millis = fields.Integer(validate=Range(min=0))


class DialRequestSchema(_ExclusiveMediaMixin, ClientStateSchema):
    platform_defaults = {
        'timeout_secs': 30,
        'time_limit_secs': 14400,
        'answering_machine_detection': 'disabled',
        'stream_track': 'inbound_track',
        'webhook_url_method': 'POST',
    }

    to = OneOrMany(required=True)
    from_ = fields.String(data_key='from', required=True, validate=Length(min=1))
    from_display_name = fields.String(validate=Length(max=128))
    connection_id = fields.String(required=True, validate=Length(min=1))
    audio_url = fields.String()
    media_name = fields.String()
    preferred_codecs = fields.String()
    timeout_secs = fields.Integer(validate=Range(min=5, max=120))
    time_limit_secs = fields.Integer(validate=Range(min=30, max=14400))
    answering_machine_detection = fields.String(validate=OneOf(['premium'] + AMD_MODES))
    answering_machine_detection_config = fields.Nested(
        AnsweringMachineDetectionConfigSchema
    )
    custom_headers = fields.List(fields.Nested(SipHeaderSchema))
    billing_group_id = fields.String()
    link_to = fields.String()
    sip_auth_username = fields.String()
    sip_auth_password = fields.String()
    sip_headers = fields.List(fields.Nested(SipHeaderSchema))
    sound_modifications = fields.Nested(SoundModificationsSchema)
    stream_url = fields.String()
    stream_track = fields.String(validate=OneOf(STREAM_TRACKS))
    send_silence_when_idle = fields.Boolean()
    webhook_url = fields.String()
    webhook_url_method = fields.String(validate=OneOf(WEBHOOK_METHODS))
    record = fields.String(validate=OneOf(['record-from-answer']))
    record_channels = fields.String(validate=OneOf(RECORDING_CHANNELS))
    record_format = fields.String(validate=OneOf(RECORDING_FORMATS))
    record_max_length = fields.Integer(validate=Range(min=0, max=43200))
    record_timeout_secs = fields.Integer(validate=Range(min=0))
    enable_dialogflow = fields.Boolean()
    dialogflow_config = fields.Nested(DialogflowConfigSchema)


class AnswerRequestSchema(ClientStateSchema):
    platform_defaults = {'stream_track': 'inbound_track', 'webhook_url_method': 'POST'}

    billing_group_id = fields.String()
    custom_headers = fields.List(fields.Nested(SipHeaderSchema))
    sip_headers = fields.List(fields.Nested(SipHeaderSchema))
    sound_modifications = fields.Nested(SoundModificationsSchema)
    stream_url = fields.String()
    stream_track = fields.String(validate=OneOf(STREAM_TRACKS))
    send_silence_when_idle = fields.Boolean()
    webhook_url = fields.String()
    webhook_url_method = fields.String(validate=OneOf(WEBHOOK_METHODS))


class BridgeRequestSchema(ClientStateSchema):
    call_control_id = fields.String(required=True, validate=Length(min=1))
    park_after_unbridge = fields.String()
    queue = fields.String()


class EnqueueRequestSchema(ClientStateSchema):
    platform_defaults = {'max_size': 100}

    queue_name = fields.String(required=True, validate=Length(min=1))
    max_size = fields.Integer(validate=Range(min=1))
    max_wait_time_secs = fields.Integer(validate=Range(min=1))


class ForkingStartRequestSchema(ClientStateSchema):
    platform_defaults = {'stream_type': 'raw'}

    target = fields.String()
    rx = fields.String()
    tx = fields.String()
    stream_type = fields.String(validate=OneOf(STREAM_TYPES))

    @validates_schema
    def validate_target(self, data, **kwargs):
        if not data.get('target') and not (data.get('rx') and data.get('tx')):
            raise ValidationError('either target or both rx and tx are required')


class ForkingStopRequestSchema(ClientStateSchema):
    platform_defaults = {'stream_type': 'raw'}

    stream_type = fields.String(validate=OneOf(STREAM_TYPES))


class _DigitsSchema(ClientStateSchema):
    inter_digit_timeout_millis = fields.Integer(validate=Range(min=0))
    maximum_digits = fields.Integer(validate=Range(min=1, max=128))
    minimum_digits = fields.Integer(validate=Range(min=1, max=128))
    terminating_digit = fields.String(validate=Regexp(r'^[0-9*#A-D]$'))
    timeout_millis = fields.Integer(validate=Range(min=0))
    valid_digits = fields.String(validate=DTMF)

    @validates_schema
    def validate_digit_bounds(self, data, **kwargs):
        minimum = data.get('minimum_digits')
        maximum = data.get('maximum_digits')
        if minimum is not None and maximum is not None and minimum > maximum:
            raise ValidationError('minimum_digits must not exceed maximum_digits')


_GATHER_DEFAULTS = {
    'inter_digit_timeout_millis': 5000,
    'maximum_digits': 128,
    'minimum_digits': 1,
    'terminating_digit': '#',
    'timeout_millis': 60000,
    'valid_digits': '0123456789#*',
}


class GatherRequestSchema(_DigitsSchema):
    platform_defaults = dict(_GATHER_DEFAULTS, initial_timeout_millis=5000)

    initial_timeout_millis = fields.Integer(validate=Range(min=0))


class GatherUsingAudioRequestSchema(_ExclusiveMediaMixin, _DigitsSchema):
    platform_defaults = dict(_GATHER_DEFAULTS, maximum_tries=3)

    audio_url = fields.String()
    media_name = fields.String()
    invalid_audio_url = fields.String()
    invalid_media_name = fields.String()
    maximum_tries = fields.Integer(validate=Range(min=1))


class GatherUsingSpeakRequestSchema(_DigitsSchema):
    platform_defaults = dict(
        _GATHER_DEFAULTS,
        maximum_tries=3,
        payload_type='text',
        service_level='premium',
    )

    language = fields.String(required=True, validate=Length(min=1))
    voice = fields.String(required=True, validate=Length(min=1))
    payload = fields.String(required=True, validate=Length(min=1))
    payload_type = fields.String(validate=OneOf(['text', 'ssml']))
    service_level = fields.String(validate=OneOf(['basic', 'premium']))
    invalid_payload = fields.String()
    maximum_tries = fields.Integer(validate=Range(min=1))


class RemoveFromQueueRequestSchema(ClientStateSchema):
    call_control_id = fields.String(validate=Length(min=1))


class PlayAudioRequestSchema(_ExclusiveMediaMixin, ClientStateSchema):
    platform_defaults = {
        'cache_audio': True,
        'loop': 1,
        'overlay': False,
        'target_legs': 'self',
    }
    _exclusive_media = ('audio_url', 'media_name', 'playback_content')

    audio_url = fields.String()
    media_name = fields.String()
    playback_content = fields.String()
    cache_audio = fields.Boolean()
    loop = fields.Raw()
    overlay = fields.Boolean()
    stop = fields.String(validate=OneOf(['current', 'all']))
    target_legs = fields.String(validate=OneOf(['self', 'opposite', 'both']))

    @validates_schema
    def validate_source(self, data, **kwargs):
        if not any(data.get(name) for name in self._exclusive_media):
            raise ValidationError('one of audio_url, media_name or playback_content is required')
        loop = data.get('loop')
        if loop is not None and loop != 'infinity':
            if isinstance(loop, bool) or not isinstance(loop, int) or loop < 1:
                raise ValidationError('loop must be a positive integer or "infinity"', 'loop')


class StopAudioRequestSchema(ClientStateSchema):
    platform_defaults = {'overlay': False, 'stop': 'all'}

    overlay = fields.Boolean()
    stop = fields.String(validate=OneOf(['current', 'all']))


class StartRecordingRequestSchema(ClientStateSchema):
    platform_defaults = {'max_length': 0, 'timeout_secs': 0, 'play_beep': False}

    channels = fields.String(required=True, validate=OneOf(RECORDING_CHANNELS))
    format = fields.String(required=True, validate=OneOf(RECORDING_FORMATS))
    max_length = fields.Integer(validate=Range(min=0, max=14400))
    play_beep = fields.Boolean()
    timeout_secs = fields.Integer(validate=Range(min=0))


class ReferRequestSchema(ClientStateSchema):
    sip_address = fields.String(required=True, validate=Length(min=1))
    custom_headers = fields.List(fields.Nested(SipHeaderSchema))
    sip_auth_username = fields.String()
    sip_auth_password = fields.String()


class RejectRequestSchema(ClientStateSchema):
    cause = fields.String(required=True, validate=OneOf(['CALL_REJECTED', 'USER_BUSY']))


class SendDtmfRequestSchema(ClientStateSchema):
    platform_defaults = {'duration_millis': 250}

    digits = fields.String(required=True, validate=DTMF)
    duration_millis = fields.Integer(validate=Range(min=100, max=500))


class SpeakTextRequestSchema(ClientStateSchema):
    platform_defaults = {'payload_type': 'text', 'service_level': 'premium'}

    language = fields.String(required=True, validate=Length(min=1))
    payload = fields.String(required=True, validate=Length(min=1))
    voice = fields.String(required=True, validate=Length(min=1))
    payload_type = fields.String(validate=OneOf(['text', 'ssml']))
    service_level = fields.String(validate=OneOf(['basic', 'premium']))
    stop = fields.String()


class StartStreamRequestSchema(ClientStateSchema):
    platform_defaults = {'stream_track': 'inbound_track', 'enable_dialogflow': False}

    stream_url = fields.String(required=True, validate=Length(min=1))
    stream_track = fields.String(validate=OneOf(STREAM_TRACKS))
    enable_dialogflow = fields.Boolean()
    dialogflow_config = fields.Nested(DialogflowConfigSchema)


class StartTranscriptionRequestSchema(ClientStateSchema):
    platform_defaults = {'language': 'en', 'transcription_tracks': 'inbound'}

    interim_results = fields.Boolean()
    language = fields.String(validate=OneOf(['de', 'en', 'es', 'fr', 'it', 'pl']))
    transcription_tracks = fields.String(validate=OneOf(['inbound', 'outbound', 'both']))


class TransferRequestSchema(_ExclusiveMediaMixin, ClientStateSchema):
    platform_defaults = {
        'answering_machine_detection': 'disabled',
        'timeout_secs': 30,
        'time_limit_secs': 14400,
        'webhook_url_method': 'POST',
    }

    to = fields.String(required=True, validate=Length(min=1))
    from_ = fields.String(data_key='from')
    from_display_name = fields.String(validate=Length(max=128))
    audio_url = fields.String()
    media_name = fields.String()
    answering_machine_detection = fields.String(validate=OneOf(AMD_MODES))
    answering_machine_detection_config = fields.Nested(
        AnsweringMachineDetectionConfigSchema
    )
    custom_headers = fields.List(fields.Nested(SipHeaderSchema))
    sip_auth_username = fields.String()
    sip_auth_password = fields.String()
    sip_headers = fields.List(fields.Nested(SipHeaderSchema))
    sound_modifications = fields.Nested(SoundModificationsSchema)
    target_leg_client_state = fields.String()
    time_limit_secs = fields.Integer(validate=Range(min=30, max=14400))
    timeout_secs = fields.Integer(validate=Range(min=5, max=120))
    webhook_url = fields.String()
    webhook_url_method = fields.String(validate=OneOf(WEBHOOK_METHODS))


class UpdateStateRequestSchema(CommandBaseSchema):
    client_state = fields.String(required=True)


class CreateConferenceRequestSchema(ClientStateSchema):
    platform_defaults = {
        'beep_enabled': 'never',
        'comfort_noise': True,
        'max_participants': 250,
        'start_conference_on_create': True,
    }

    call_control_id = fields.String(required=True, validate=Length(min=1))
    name = fields.String(required=True, validate=Length(min=1))
    beep_enabled = fields.String(validate=OneOf(BEEP_MODES))
    comfort_noise = fields.Boolean()
    duration_minutes = fields.Integer(validate=Range(min=1, max=240))
    hold_audio_url = fields.String()
    hold_media_name = fields.String()
    max_participants = fields.Integer(validate=Range(min=2, max=800))
    start_conference_on_create = fields.Boolean()

    @validates_schema
    def validate_hold_media(self, data, **kwargs):
        if data.get('hold_audio_url') and data.get('hold_media_name'):
            raise ValidationError('hold_audio_url and hold_media_name cannot be used together')


class _ParticipantOptionsMixin:
    @validates_schema
    def validate_hold_media(self, data, **kwargs):
        if data.get('hold_audio_url') and data.get('hold_media_name'):
            raise ValidationError('hold_audio_url and hold_media_name cannot be used together')


class DialParticipantRequestSchema(_ParticipantOptionsMixin, ClientStateSchema):
    platform_defaults = {
        'hold': False,
        'mute': False,
        'start_conference_on_enter': False,
        'supervisor_role': 'none',
    }

    call_control_id = fields.String(required=True, validate=Length(min=1))
    from_ = fields.String(data_key='from', required=True, validate=Length(min=1))
    to = fields.String(required=True, validate=Length(min=1))
    hold = fields.Boolean()
    hold_audio_url = fields.String()
    hold_media_name = fields.String()
    mute = fields.Boolean()
    start_conference_on_enter = fields.Boolean()
    supervisor_role = fields.String(validate=OneOf(SUPERVISOR_ROLES))
    whisper_call_control_ids = fields.List(fields.String(validate=Length(min=1)))


class JoinConferenceRequestSchema(_ParticipantOptionsMixin, ClientStateSchema):
    platform_defaults = {
        'end_conference_on_exit': False,
        'hold': False,
        'mute': False,
        'soft_end_conference_on_exit': False,
        'start_conference_on_enter': False,
        'supervisor_role': 'none',
    }

    call_control_id = fields.String(required=True, validate=Length(min=1))
    beep_enabled = fields.String(validate=OneOf(BEEP_MODES))
    end_conference_on_exit = fields.Boolean()
    hold = fields.Boolean()
    hold_audio_url = fields.String()
    hold_media_name = fields.String()
    mute = fields.Boolean()
    soft_end_conference_on_exit = fields.Boolean()
    start_conference_on_enter = fields.Boolean()
    supervisor_role = fields.String(validate=OneOf(SUPERVISOR_ROLES))
    whisper_call_control_ids = fields.List(fields.String(validate=Length(min=1)))


class LeaveConferenceRequestSchema(CommandBaseSchema):
    call_control_id = fields.String(required=True, validate=Length(min=1))
    command_id = fields.String(validate=Length(min=1))
    beep_enabled = fields.String(validate=OneOf(BEEP_MODES))


class ParticipantsRequestSchema(CommandBaseSchema):
    '''Targets participants; an empty or absent list targets all of them'''

    call_control_ids = fields.List(fields.String(validate=Length(min=1)))


class HoldParticipantsRequestSchema(_ExclusiveMediaMixin, ParticipantsRequestSchema):
    audio_url = fields.String()
    media_name = fields.String()


class PlayAudioParticipantsRequestSchema(_ExclusiveMediaMixin, ParticipantsRequestSchema):
    audio_url = fields.String()
    media_name = fields.String()
    loop = fields.Integer(validate=Range(min=1))


class SpeakTextParticipantsRequestSchema(ParticipantsRequestSchema):
    platform_defaults = {'payload_type': 'text'}

    command_id = fields.String(validate=Length(min=1))
    language = fields.String(required=True, validate=Length(min=1))
    payload = fields.String(required=True, validate=Length(min=1))
    payload_type = fields.String(validate=OneOf(['text', 'ssml']))
    voice = fields.String(required=True, validate=OneOf(['male', 'female']))


class RequiredParticipantsRequestSchema(CommandBaseSchema):
    call_control_ids = fields.List(
        fields.String(validate=Length(min=1)), required=True
    )


class UpdateParticipantsRequestSchema(CommandBaseSchema):
    call_control_id = fields.String(required=True, validate=Length(min=1))
    command_id = fields.String(validate=Length(min=1))
    supervisor_role = fields.String(required=True, validate=OneOf(SUPERVISOR_ROLES))
    whisper_call_control_ids = fields.List(fields.String(validate=Length(min=1)))


class SendFaxRequestSchema(_ExclusiveMediaMixin, CommandBaseSchema):
    platform_defaults = {
        'monochrome': False,
        'quality': 'high',
        'store_media': False,
        't38_enabled': True,
    }
    _exclusive_media = ('media_url', 'media_name')

    connection_id = fields.String(required=True, validate=Length(min=1))
    from_ = fields.String(data_key='from', required=True, validate=Length(min=1))
    to = fields.String(required=True, validate=Length(min=1))
    media_name = fields.String()
    media_url = fields.String()
    monochrome = fields.Boolean()
    quality = fields.String(validate=OneOf(FAX_QUALITIES))
    store_media = fields.Boolean()
    t38_enabled = fields.Boolean()
    webhook_url = fields.String()

    @validates_schema
    def validate_media(self, data, **kwargs):
        if not (data.get('media_url') or data.get('media_name')):
            raise ValidationError('one of media_url or media_name is required')
        if data.get('store_media') and data.get('media_name'):
            raise ValidationError('store_media does not support media_name')


class EmptyRequestSchema(CommandBaseSchema):
    pass
