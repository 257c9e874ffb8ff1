# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging
from typing import NamedTuple

from wazo_call_control.commands import Acknowledgment, Command
from wazo_call_control.events import Event, MalformedEvent
from wazo_call_control.exceptions import CommandRejected, NoSuchResource
from wazo_call_control.idempotency import EventDeduplicator, IdempotencyTracker, TrackedCommand
from wazo_call_control.pagination import Page, PageCursor, PageMeta
from wazo_call_control.projector import EntityProjector
from wazo_call_control.projector.projector import utcnow
from wazo_call_control.transport import HttpTransport
from wazo_call_control.types import CANCELLABLE_FAX_STATUSES, IngestResult

from .exceptions import PreflightRejected

logger = logging.getLogger(__name__)

REMOTE_LISTINGS = {
    'calls': 'list_calls',
    'conferences': 'list_conferences',
    'participants': 'list_conference_participants',
    'queue_calls': 'list_queue_calls',
}

_INGEST_LOG_LEVELS = {
    IngestResult.applied: logging.DEBUG,
    IngestResult.duplicate: logging.INFO,
    IngestResult.orphan: logging.DEBUG,
    IngestResult.malformed: logging.WARNING,
    IngestResult.terminal: logging.WARNING,
    IngestResult.stale: logging.DEBUG,
    IngestResult.ignored: logging.DEBUG,
}


class Outcome(NamedTuple):
    acknowledgment: Acknowledgment
    replayed: bool = False


class CorrelationEngine:
    '''Entry point for callers and for the webhook stream

    ``transport`` needs one method, ``execute(CommandRequest) -> dict``,
    raising ``CommandRejected`` or ``TransportError``.
    '''

    def __init__(
        self,
        transport=None,
        store=None,
        tracker=None,
        deduplicator=None,
        clock=utcnow,
        preflight=False,
        max_conference_minutes=240,
    ):
        self._transport = transport
        self._tracker = tracker or IdempotencyTracker()
        self._deduplicator = deduplicator or EventDeduplicator()
        self._preflight = preflight
        self._projector = EntityProjector(
            store,
            clock,
            on_resource_ended=self._tracker.expire_resource,
            max_conference_minutes=max_conference_minutes,
        )

    @classmethod
    def from_config(cls, config, transport=None):
        if transport is None and config['transport'].get('base_url'):
            transport = HttpTransport.from_config(config['transport'])
        return cls(
            transport,
            tracker=IdempotencyTracker(config['idempotency']['retention_seconds']),
            deduplicator=EventDeduplicator(config['events']['dedup_capacity']),
            preflight=config['engine']['preflight'],
            max_conference_minutes=config['conference']['max_duration_minutes'],
        )

    @property
    def projector(self):
        return self._projector

    def submit(self, command: Command) -> Outcome:
        if self._transport is None:
            raise RuntimeError('CorrelationEngine has no transport')

        resource_id = command.resource_id
        entry, execute = self._tracker.begin(resource_id, command.command_id, command.scope)
        while not execute:
            entry.wait()
            if entry.status == TrackedCommand.completed:
                logger.info('replaying %s (command_id %s)', command.name, command.command_id)
                return entry.outcome._replace(replayed=True)
            if entry.status == TrackedCommand.rejected:
                logger.info('replaying rejection of %s (command_id %s)', command.name, command.command_id)
                raise entry.error
            entry, execute = self._tracker.begin(resource_id, command.command_id, command.scope)

        logger.debug('executing %s', command)
        try:
            if self._preflight:
                self._check(command)
            document = self._transport.execute(command.request())
        except CommandRejected as e:
            logger.info('%s rejected: %s', command.name, e.message)
            self._tracker.reject(entry, e)
            raise
        except Exception:
            # PreflightRejected and TransportError: nothing was recorded, a retry must run
            self._tracker.abandon(entry)
            raise

        acknowledgment = Acknowledgment.from_response(command, document)
        try:
            self._projector.apply_ack(command, acknowledgment)
        finally:
            outcome = Outcome(acknowledgment)
            self._tracker.complete(entry, outcome)
        return outcome

    def _check(self, command):
        if command.name == 'cancel_fax':
            fax = self._projector.store.get_fax(command.target_id)
            if fax is not None and fax.status not in CANCELLABLE_FAX_STATUSES:
                raise PreflightRejected(command.name, command.target_id, f'fax is {fax.status}')
        elif command.name == 'enqueue':
            queue_name = command.body['queue_name']
            if self._projector.queues.is_full(queue_name):
                raise PreflightRejected(command.name, command.target_id, f'queue {queue_name} is full')

    def ingest(self, raw_event) -> IngestResult:
        try:
            event = Event.from_dict(raw_event)
        except MalformedEvent as e:
            logger.warning('dropping malformed event %s: %s', e.event_id, e.errors)
            return IngestResult.malformed

        if not self._deduplicator.first_delivery(event.id):
            logger.info('ignoring duplicate event %s', event.id)
            return IngestResult.duplicate

        try:
            result = self._projector.apply_event(event)
        except Exception:
            self._deduplicator.forget(event.id)
            raise
        logger.log(_INGEST_LOG_LEVELS[result], '%s: %s', event, result)
        return result

    def project(self, resource_id, kind=None):
        '''Current snapshot of a call, conference, queue or fax'''
        lookups = {
            'call': self._projector.call,
            'conference': self._projector.conference,
            'queue': self._projector.queue,
            'fax': self._projector.fax,
        }
        kinds = [kind] if kind else list(lookups)
        for candidate in kinds:
            lookup = lookups.get(candidate)
            if lookup is None:
                raise ValueError(f'unknown resource kind: {candidate}')
            snapshot = lookup(resource_id)
            if snapshot is not None:
                return snapshot
        raise NoSuchResource(kind or 'resource', resource_id)

    def list(self, kind, filter=None, page=None, parent_id=None, remote=None) -> Page:
        '''One page of a listing

        Listings come from the platform when a transport is configured, and
        replace the local cache for the entities they return. Otherwise the
        local cache is paged.
        '''
        cursor = PageCursor(kind, filter, **(page or {}))
        if remote is None:
            remote = self._transport is not None and kind in REMOTE_LISTINGS
        if remote:
            return self._list_remote(cursor, parent_id)
        return cursor.slice(self._local_items(kind, parent_id))

    def _list_remote(self, cursor, parent_id):
        command = Command(REMOTE_LISTINGS[cursor.kind], target_id=parent_id, query=cursor.query_params())
        document = self._transport.execute(command.request())
        acknowledgment = Acknowledgment.from_response(command, document)
        meta = PageMeta.from_dict(acknowledgment.meta, cursor)
        items = acknowledgment.data if isinstance(acknowledgment.data, list) else []
        # a filtered page says nothing about the entities it leaves out
        complete = meta.complete and not cursor.filter
        snapshots = self._projector.apply_listing(command, items, complete=complete)
        return Page(snapshots, meta)

    def _local_items(self, kind, parent_id):
        if kind == 'calls':
            calls = self._projector.all_calls()
            if parent_id:
                calls = [call for call in calls if call.connection_id == parent_id]
            return calls
        if kind == 'conferences':
            return self._projector.all_conferences()
        if kind == 'participants':
            return self._projector.participants(parent_id)
        if kind == 'queue_calls':
            queue = self._projector.queue(parent_id)
            return list(queue.calls) if queue else []
        if kind == 'faxes':
            return self._projector.all_faxes()
        raise ValueError(f'unknown listing: {kind}')

    def command_status(self, resource_id, command_id):
        '''``pending``, ``completed``, ``rejected`` or None when not tracked'''
        entry = self._tracker.get(resource_id, command_id)
        return entry.status if entry else None
