# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import queue
import threading

logger = logging.getLogger(__name__)


class WebhookConsumer:
    '''Inbound channel of verified webhooks, drained by one worker thread'''

    def __init__(self, engine, timeout=1.0, maxsize=0):
        self._engine = engine
        self._timeout = timeout
        self._queue = queue.Queue(maxsize)
        self._started = False
        self._stopped = threading.Event()
        self._thread = None

    def start(self):
        if self._started:
            raise RuntimeError('Webhook consumer already started')

        self._started = True
        self._thread = threading.Thread(target=self._run, name='webhook_consumer', daemon=True)
        self._thread.start()

    def stop(self):
        self._stopped.set()
        if self._thread:
            logger.debug('joining webhook consumer thread...')
            self._thread.join()

    def put(self, raw_event):
        self._queue.put(raw_event)

    def drain(self):
        '''Block until every webhook put so far has been ingested'''
        self._queue.join()

    def _run(self):
        while not self._stopped.is_set():
            try:
                raw_event = self._queue.get(timeout=self._timeout)
            except queue.Empty:
                continue

            try:
                self._engine.ingest(raw_event)
            except Exception:
                logger.exception('Unexpected error while ingesting webhook')
            finally:
                self._queue.task_done()
