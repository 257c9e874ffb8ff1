# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from .tracker import EventDeduplicator, IdempotencyTracker, TrackedCommand

__all__ = [
    'EventDeduplicator',
    'IdempotencyTracker',
    'TrackedCommand',
]
