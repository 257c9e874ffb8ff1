# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging

from marshmallow import ValidationError

from wazo_call_control.events import EventType
from wazo_call_control.types import FaxDirection, FaxStatus, IngestResult

from .models import FaxSnapshot
from .schemas import fax_data_schema

logger = logging.getLogger(__name__)

EVENT_STATUSES = {
    EventType.fax_queued: FaxStatus.queued,
    EventType.fax_media_processing: FaxStatus.media_processing,
    EventType.fax_media_processed: FaxStatus.media_processed,
    EventType.fax_originated: FaxStatus.originated,
    EventType.fax_sending_started: FaxStatus.sending,
    EventType.fax_delivered: FaxStatus.delivered,
    EventType.fax_failed: FaxStatus.failed,
    EventType.fax_receiving_started: FaxStatus.receiving,
    EventType.fax_received: FaxStatus.received,
}

INBOUND_EVENTS = frozenset([EventType.fax_receiving_started, EventType.fax_received])

DETAIL_FIELDS = ('connection_id', 'from_', 'to', 'quality', 'media_url', 'media_name', 'created_at')


class FaxProjector:
    def __init__(self, store, locks, clock):
        self._store = store
        self._locks = locks
        self._clock = clock

    def _lock(self, fax_id):
        return self._locks.acquired(('fax', fax_id))

    def apply_ack(self, command, ack) -> IngestResult:
        if command.name in ('send_fax', 'get_fax'):
            return self._apply_remote(command, ack.data)

        fax_id = command.target_id
        with self._lock(fax_id):
            fax = self._store.get_fax(fax_id)
            if fax is None:
                logger.debug('%s acknowledged for unknown fax %s', command.name, fax_id)
                return IngestResult.ignored

            if command.name == 'delete_fax':
                self._store.remove_fax(fax_id)
                logger.info('fax %s deleted', fax_id)
            elif command.name == 'refresh_fax':
                self._store.put_fax(fax.evolve(media_stored_at=self._clock()))
            elif command.name == 'cancel_fax':
                if fax.status.terminal and fax.confirmed:
                    logger.warning('ignoring cancel_fax: fax %s already %s', fax_id, fax.status)
                    return IngestResult.terminal
                logger.info('fax %s: %s -> failed (tentative)', fax_id, fax.status)
                self._store.put_fax(
                    fax.evolve(status=FaxStatus.failed, confirmed=False, failure_reason='user_cancelled')
                )
        return IngestResult.applied

    def _apply_remote(self, command, data):
        try:
            data = fax_data_schema.load(data)
        except ValidationError as e:
            logger.warning('unusable %s acknowledgment: %s', command.name, e.messages)
            return IngestResult.ignored

        fax_id = data['id']
        with self._lock(fax_id):
            fax = self._store.get_fax(fax_id)
            if fax is None:
                fax = FaxSnapshot(fax_id)
                if command.name == 'send_fax':
                    fax = fax.evolve(
                        store_media=bool(command.effective('store_media')),
                        quality=command.effective('quality'),
                        connection_id=command.body.get('connection_id'),
                        from_=command.body.get('from_'),
                        to=command.body.get('to'),
                        media_url=command.body.get('media_url'),
                        media_name=command.body.get('media_name'),
                    )

            changes = {name: data[name] for name in DETAIL_FIELDS if data.get(name) is not None}
            for name in ('store_media', 'failure_reason'):
                if data.get(name) is not None:
                    changes[name] = data[name]
            if data.get('direction'):
                changes['direction'] = FaxDirection(data['direction'])
            if data.get('status'):
                changes['status'] = FaxStatus(data['status'])
                changes['confirmed'] = command.name == 'get_fax'
            url = data.get('stored_media_url')
            if url and url != fax.stored_media_url:
                changes.update(stored_media_url=url, media_stored_at=self._clock())

            fax = fax.evolve(**changes)
            self._store.put_fax(fax)
            logger.debug('fax %s projected from %s (%s)', fax_id, command.name, fax.status)
        return IngestResult.applied

    def apply_event(self, event) -> IngestResult:
        fax_id = event.resource_id
        payload = event.payload
        status = EVENT_STATUSES[event.event_type]
        with self._lock(fax_id):
            fax = self._store.get_fax(fax_id)
            if fax is None:
                inbound = payload.get('direction') == FaxDirection.inbound.value
                if not inbound and event.event_type not in INBOUND_EVENTS:
                    logger.debug('dropping orphan event %s', event)
                    return IngestResult.orphan
                fax = FaxSnapshot(fax_id, direction=FaxDirection.inbound, status=FaxStatus.initiated)
                logger.info('inbound fax %s', fax_id)

            if fax.confirmed and fax.status.terminal:
                logger.warning('ignoring %s: fax %s already %s', event.raw_event_type, fax_id, fax.status)
                return IngestResult.terminal

            changes = {name: payload[name] for name in DETAIL_FIELDS if payload.get(name) is not None}
            if payload.get('store_media') is not None:
                changes['store_media'] = payload['store_media']
            if status is FaxStatus.failed:
                changes['failure_reason'] = payload.get('failure_reason') or fax.failure_reason

            if fax.confirmed and status.rank(fax.direction) <= fax.status.rank(fax.direction):
                logger.debug('stale %s for fax %s', event.raw_event_type, fax_id)
                self._store.put_fax(fax.evolve(**changes))
                return IngestResult.stale

            if status is not FaxStatus.failed:
                changes['failure_reason'] = None
            logger.info('fax %s: %s -> %s', fax_id, fax.status, status)
            self._store.put_fax(fax.evolve(status=status, confirmed=True, **changes))
        return IngestResult.applied

    def snapshot(self, fax_id) -> FaxSnapshot | None:
        fax = self._store.get_fax(fax_id)
        if fax is None:
            return None
        return fax.as_of(self._clock())
