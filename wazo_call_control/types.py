# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class RemoteValue(str, Enum):
    '''Closed set of values reported by the platform

    Values the platform may add later are mapped to ``unknown`` instead of
    failing, and logged so that the mismatch does not go unnoticed.
    '''

    @classmethod
    def _missing_(cls, value):
        logger.warning('unrecognized %s value: %r', cls.__name__, value)
        return cls('unknown')

    @classmethod
    def parse(cls, value):
        if value is None:
            return None
        return cls(value)

    def __str__(self):
        return self.value


class CallState(RemoteValue):
    parked = 'parked'
    bridging = 'bridging'
    answered = 'answered'
    bridged = 'bridged'
    hangup = 'hangup'
    unknown = 'unknown'

    @property
    def rank(self) -> int:
        return _CALL_STATE_RANKS[self]

    @property
    def terminal(self) -> bool:
        return self is CallState.hangup


_CALL_STATE_RANKS = {
    CallState.unknown: -1,
    CallState.parked: 0,
    CallState.bridging: 1,
    CallState.answered: 2,
    CallState.bridged: 3,
    CallState.hangup: 4,
}


class ConferenceStatus(RemoteValue):
    init = 'init'
    in_progress = 'in_progress'
    completed = 'completed'
    unknown = 'unknown'


class ConferenceEndReason(RemoteValue):
    all_left = 'all_left'
    ended_via_api = 'ended_via_api'
    host_left = 'host_left'
    time_exceeded = 'time_exceeded'
    unknown = 'unknown'


class ParticipantStatus(RemoteValue):
    joining = 'joining'
    joined = 'joined'
    left = 'left'
    unknown = 'unknown'


class SupervisorRole(RemoteValue):
    barge = 'barge'
    monitor = 'monitor'
    none = 'none'
    whisper = 'whisper'
    unknown = 'unknown'


class DequeueReason(RemoteValue):
    bridged = 'bridged'
    bridging_in_process = 'bridging-in-process'
    hangup = 'hangup'
    leave = 'leave'
    timeout = 'timeout'
    unknown = 'unknown'


class FaxDirection(RemoteValue):
    inbound = 'inbound'
    outbound = 'outbound'
    unknown = 'unknown'


class FaxStatus(RemoteValue):
    queued = 'queued'
    media_processing = 'media.processing'
    media_processed = 'media.processed'
    originated = 'originated'
    sending = 'sending'
    delivered = 'delivered'
    failed = 'failed'
    initiated = 'initiated'
    receiving = 'receiving'
    received = 'received'
    unknown = 'unknown'

    @property
    def terminal(self) -> bool:
        return self in (FaxStatus.delivered, FaxStatus.failed, FaxStatus.received)

    def rank(self, direction: FaxDirection) -> int:
        if direction is FaxDirection.inbound:
            ranks = _INBOUND_FAX_RANKS
        else:
            ranks = _OUTBOUND_FAX_RANKS
        return ranks.get(self, -1)


_OUTBOUND_FAX_RANKS = {
    FaxStatus.queued: 0,
    FaxStatus.media_processing: 1,
    FaxStatus.media_processed: 2,
    FaxStatus.originated: 3,
    FaxStatus.sending: 4,
    FaxStatus.delivered: 5,
    FaxStatus.failed: 5,
}
_INBOUND_FAX_RANKS = {
    FaxStatus.initiated: 0,
    FaxStatus.receiving: 1,
    FaxStatus.received: 2,
    FaxStatus.failed: 2,
}

CANCELLABLE_FAX_STATUSES = frozenset(
    [
        FaxStatus.queued,
        FaxStatus.media_processed,
        FaxStatus.originated,
        FaxStatus.sending,
    ]
)


class IngestResult(str, Enum):
    applied = 'applied'
    duplicate = 'duplicate'
    orphan = 'orphan'
    malformed = 'malformed'
    terminal = 'terminal'
    stale = 'stale'
    ignored = 'ignored'

    def __str__(self):
        return self.value
