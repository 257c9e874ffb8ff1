# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from .models import (
    CallSnapshot,
    ConferenceSnapshot,
    FaxSnapshot,
    ParticipantSnapshot,
    QueuedCallSnapshot,
    QueueSnapshot,
)
from .projector import EntityProjector
from .store import EntityStore

__all__ = [
    'CallSnapshot',
    'ConferenceSnapshot',
    'EntityProjector',
    'EntityStore',
    'FaxSnapshot',
    'ParticipantSnapshot',
    'QueuedCallSnapshot',
    'QueueSnapshot',
]
