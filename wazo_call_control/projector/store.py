# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import threading
from collections import OrderedDict

from .models import CallSnapshot, ConferenceSnapshot, FaxSnapshot, ParticipantSnapshot


class QueueRecord:
    '''Mutable queue state, only touched under the queue lock'''

    def __init__(self, name, max_size=None):
        self.name = name
        self.max_size = max_size
        self.average_wait_time_secs = None
        self.entries: OrderedDict[str, dict] = OrderedDict()

    def renumber(self):
        for position, entry in enumerate(self.entries.values(), start=1):
            entry['queue_position'] = position


class EntityStore:
    '''Arena of projected entities, owned by one engine

    Each getter returns the current snapshot; writers replace snapshots under
    the resource lock held by the projector.
    '''

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: dict[str, CallSnapshot] = {}
        self._conferences: dict[str, ConferenceSnapshot] = {}
        self._participants: dict[tuple[str, str], ParticipantSnapshot] = {}
        self._queues: dict[str, QueueRecord] = {}
        self._faxes: dict[str, FaxSnapshot] = {}

    def get_call(self, call_control_id) -> CallSnapshot | None:
        with self._lock:
            return self._calls.get(call_control_id)

    def put_call(self, call: CallSnapshot):
        with self._lock:
            self._calls[call.call_control_id] = call

    def calls(self) -> list[CallSnapshot]:
        with self._lock:
            return list(self._calls.values())

    def get_conference(self, conference_id) -> ConferenceSnapshot | None:
        with self._lock:
            return self._conferences.get(conference_id)

    def put_conference(self, conference: ConferenceSnapshot):
        with self._lock:
            self._conferences[conference.id] = conference

    def conferences(self) -> list[ConferenceSnapshot]:
        with self._lock:
            return list(self._conferences.values())

    def get_participant(self, conference_id, call_control_id) -> ParticipantSnapshot | None:
        with self._lock:
            return self._participants.get((conference_id, call_control_id))

    def put_participant(self, participant: ParticipantSnapshot):
        with self._lock:
            self._participants[participant.key] = participant

    def participants(self, conference_id) -> list[ParticipantSnapshot]:
        with self._lock:
            return [
                participant
                for (conference, _), participant in self._participants.items()
                if conference == conference_id
            ]

    def participations(self, call_control_id) -> list[ParticipantSnapshot]:
        with self._lock:
            return [
                participant
                for (_, call), participant in self._participants.items()
                if call == call_control_id
            ]

    def get_queue(self, name) -> QueueRecord | None:
        with self._lock:
            return self._queues.get(name)

    def get_or_create_queue(self, name, max_size=None) -> QueueRecord:
        with self._lock:
            queue = self._queues.get(name)
            if queue is None:
                queue = self._queues[name] = QueueRecord(name, max_size)
            return queue

    def queues(self) -> list[QueueRecord]:
        with self._lock:
            return list(self._queues.values())

    def get_fax(self, fax_id) -> FaxSnapshot | None:
        with self._lock:
            return self._faxes.get(fax_id)

    def put_fax(self, fax: FaxSnapshot):
        with self._lock:
            self._faxes[fax.id] = fax

    def remove_fax(self, fax_id):
        with self._lock:
            return self._faxes.pop(fax_id, None)

    def faxes(self) -> list[FaxSnapshot]:
        with self._lock:
            return list(self._faxes.values())
