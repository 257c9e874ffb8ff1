# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum

from wazo_call_control.types import (
    CallState,
    ConferenceEndReason,
    ConferenceStatus,
    DequeueReason,
    FaxDirection,
    FaxStatus,
    ParticipantStatus,
    SupervisorRole,
)

STORED_MEDIA_TTL = timedelta(minutes=10)


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (frozenset, set)):
        return sorted(value)
    if isinstance(value, tuple):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


class _SnapshotMixin:
    # fields only used to order concurrent updates
    _internal_fields: tuple[str, ...] = ()

    def evolve(self, **changes):
        return replace(self, **changes)

    def to_dict(self):
        result = {}
        for key, value in asdict(self).items():
            if key in self._internal_fields:
                continue
            result['from' if key == 'from_' else key] = _plain(value)
        return result


@dataclass(frozen=True)
class CallSnapshot(_SnapshotMixin):
    _internal_fields = ('lifecycle_at',)

    call_control_id: str
    call_leg_id: str | None = None
    call_session_id: str | None = None
    connection_id: str | None = None
    client_state: str | None = None
    state: CallState = CallState.parked
    confirmed: bool = False
    hangup_cause: str | None = None
    hangup_source: str | None = None
    direction: str | None = None
    from_: str | None = None
    to: str | None = None
    start_time: str | None = None
    queue: str | None = None
    dequeue_reason: DequeueReason | None = None
    playing: bool = False
    speaking: bool = False
    forking: bool = False
    streaming: bool = False
    transcribing: bool = False
    recording: bool = False
    gathering: bool = False
    last_dtmf: str | None = None
    gathered_digits: str | None = None
    gather_status: str | None = None
    last_transcript: str | None = None
    machine_detection: str | None = None
    machine_greeting: str | None = None
    refer_status: str | None = None
    recording_urls: tuple = ()
    last_event_at: datetime | None = None
    lifecycle_at: datetime | None = None

    @property
    def is_alive(self) -> bool:
        return self.state in (CallState.answered, CallState.bridged)

    def to_dict(self):
        result = super().to_dict()
        result['is_alive'] = self.is_alive
        result['recording_urls'] = dict(self.recording_urls)
        return result


@dataclass(frozen=True)
class ConferenceSnapshot(_SnapshotMixin):
    id: str
    name: str | None = None
    status: ConferenceStatus = ConferenceStatus.in_progress
    connection_id: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None
    max_participants: int | None = None
    end_reason: ConferenceEndReason | None = None
    region: str | None = None
    recording: bool = False
    creator_call_control_id: str | None = None

    @property
    def completed(self) -> bool:
        return self.status is ConferenceStatus.completed

    def expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at


@dataclass(frozen=True)
class ParticipantSnapshot(_SnapshotMixin):
    _internal_fields = ('muted_at', 'hold_at', 'role_at', 'auto_held', 'status_at')

    conference_id: str
    call_control_id: str
    id: str | None = None
    call_leg_id: str | None = None
    status: ParticipantStatus = ParticipantStatus.joining
    muted: bool = False
    on_hold: bool = False
    supervisor_role: SupervisorRole = SupervisorRole.none
    whisper_call_control_ids: frozenset = field(default_factory=frozenset)
    end_conference_on_exit: bool = False
    soft_end_conference_on_exit: bool = False
    muted_at: int = 0
    hold_at: int = 0
    role_at: int = 0
    auto_held: bool = False
    status_at: datetime | None = None

    @property
    def key(self):
        return (self.conference_id, self.call_control_id)

    @property
    def active(self) -> bool:
        return self.status is not ParticipantStatus.left

    @property
    def whispering(self) -> bool:
        return bool(self.whisper_call_control_ids)


@dataclass(frozen=True)
class QueuedCallSnapshot(_SnapshotMixin):
    queue_name: str
    call_control_id: str
    queue_position: int
    enqueued_at: datetime
    wait_time_secs: int
    call_leg_id: str | None = None
    call_session_id: str | None = None
    connection_id: str | None = None
    from_: str | None = None
    to: str | None = None
    confirmed: bool = False


@dataclass(frozen=True)
class QueueSnapshot(_SnapshotMixin):
    name: str
    max_size: int | None
    current_size: int
    average_wait_time_secs: int | None
    calls: tuple = ()

    def to_dict(self):
        result = super().to_dict()
        result['calls'] = [call.to_dict() for call in self.calls]
        return result


@dataclass(frozen=True)
class FaxSnapshot(_SnapshotMixin):
    _internal_fields = ('media_stored_at',)

    id: str
    direction: FaxDirection = FaxDirection.outbound
    status: FaxStatus = FaxStatus.queued
    confirmed: bool = False
    quality: str | None = None
    store_media: bool = False
    stored_media_url: str | None = None
    media_stored_at: datetime | None = None
    connection_id: str | None = None
    from_: str | None = None
    to: str | None = None
    media_url: str | None = None
    media_name: str | None = None
    failure_reason: str | None = None
    created_at: str | None = None

    def as_of(self, now: datetime) -> FaxSnapshot:
        '''The stored media link is only handed out while it is usable'''
        if not self.stored_media_url:
            return self
        if not self.store_media or self.media_stored_at is None:
            return replace(self, stored_media_url=None)
        if now - self.media_stored_at >= STORED_MEDIA_TTL:
            return replace(self, stored_media_url=None)
        return self
