# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from .event import LIFECYCLE_EVENT_TYPES, Event, EventType
from .exceptions import MalformedEvent

__all__ = [
    'Event',
    'EventType',
    'LIFECYCLE_EVENT_TYPES',
    'MalformedEvent',
]
