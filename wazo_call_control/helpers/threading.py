# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import threading
import time
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class _Entry:
    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class KeyedLock:
    '''One lock per resource key

    Holders of different keys never wait on each other. Locks are discarded
    once nobody holds or waits for them.
    '''

    def __init__(self, name):
        self._name = name
        self._entries = {}
        self._registry_lock = threading.Lock()

    @contextmanager
    def acquired(self, key):
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        acquire_start_time = time.monotonic()
        entry.lock.acquire()
        logger.debug(
            'lock "%s" acquired for %s after %.3f',
            self._name,
            key,
            time.monotonic() - acquire_start_time,
        )
        try:
            yield
        finally:
            entry.lock.release()
            with self._registry_lock:
                entry.users -= 1
                if not entry.users:
                    del self._entries[key]
            logger.debug('lock "%s" released for %s', self._name, key)

    def __len__(self):
        with self._registry_lock:
            return len(self._entries)
