# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from time import monotonic_ns

logger = logging.getLogger(__name__)

# resources whose entries live as long as the resource itself
LIFETIME_SCOPES = frozenset(['call', 'conference'])


def to_nsec(seconds):
    return int(seconds * 1_000_000_000)


class TrackedCommand:
    '''One logical execution of a command, shared by its duplicates'''

    pending = 'pending'
    completed = 'completed'
    rejected = 'rejected'

    def __init__(self, resource_id, command_id, scope):
        self.resource_id = resource_id
        self.command_id = command_id
        self.scope = scope
        self.status = self.pending
        self.outcome = None
        self.error = None
        self.created_at = monotonic_ns()
        self._done = threading.Event()

    def complete(self, outcome):
        self.status = self.completed
        self.outcome = outcome
        self._done.set()

    def reject(self, error):
        self.status = self.rejected
        self.error = error
        self._done.set()

    def abandon(self):
        # unknown outcome: waiting duplicates must execute on their own
        self._done.set()

    def wait(self, timeout=None):
        return self._done.wait(timeout)

    @property
    def done(self):
        return self._done.is_set()


class IdempotencyTracker:
    def __init__(self, retention_seconds=3600):
        self._entries: dict[tuple[str, str], TrackedCommand] = {}
        self._lock = threading.Lock()
        self._retention = to_nsec(retention_seconds)

    def begin(self, resource_id, command_id, scope='call'):
        '''Register a submission

        Returns ``(entry, True)`` when the caller must execute the command and
        ``(entry, False)`` when an execution with the same key already exists.
        Without ``command_id`` nothing is tracked: ``(None, True)``.
        '''
        if not command_id or not resource_id:
            return None, True

        key = (resource_id, command_id)
        with self._lock:
            self._evict_expired()
            entry = self._entries.get(key)
            if entry is not None:
                logger.debug('duplicate command %s on %s', command_id, resource_id)
                return entry, False
            entry = self._entries[key] = TrackedCommand(resource_id, command_id, scope)
        return entry, True

    def complete(self, entry, outcome):
        if entry is not None:
            entry.complete(outcome)

    def reject(self, entry, error):
        if entry is not None:
            entry.reject(error)

    def abandon(self, entry):
        if entry is None:
            return
        with self._lock:
            key = (entry.resource_id, entry.command_id)
            if self._entries.get(key) is entry:
                del self._entries[key]
        entry.abandon()

    def get(self, resource_id, command_id) -> TrackedCommand | None:
        with self._lock:
            return self._entries.get((resource_id, command_id))

    def expire_resource(self, resource_id):
        with self._lock:
            keys = [key for key in self._entries if key[0] == resource_id]
            for key in keys:
                del self._entries[key]
        if keys:
            logger.debug('expired %d command ids of %s', len(keys), resource_id)

    def _evict_expired(self):
        now = monotonic_ns()
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.scope not in LIFETIME_SCOPES
            and entry.done
            and now - entry.created_at >= self._retention
        ]
        for key in expired:
            del self._entries[key]

    def __len__(self):
        with self._lock:
            return len(self._entries)


class EventDeduplicator:
    '''Bounded memory of delivered event ids'''

    def __init__(self, capacity=100000):
        self._capacity = capacity
        self._seen = OrderedDict()
        self._lock = threading.Lock()

    def first_delivery(self, event_id) -> bool:
        with self._lock:
            if event_id in self._seen:
                self._seen.move_to_end(event_id)
                return False
            self._seen[event_id] = True
            if len(self._seen) > self._capacity:
                self._seen.popitem(last=False)
            return True

    def forget(self, event_id):
        with self._lock:
            self._seen.pop(event_id, None)

    def __contains__(self, event_id):
        with self._lock:
            return event_id in self._seen
