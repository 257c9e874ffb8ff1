# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from unittest import TestCase
from unittest.mock import Mock, call

from hamcrest import assert_that, calling, equal_to, raises

from ..engine import CorrelationEngine
from ..webhooks import WebhookConsumer


def raw_event(id_, event_type, **payload):
    return {
        'id': id_,
        'event_type': event_type,
        'occurred_at': '2026-03-01T10:00:00Z',
        'payload': payload,
    }


class TestWebhookConsumer(TestCase):
    def setUp(self):
        self.engine = Mock(CorrelationEngine)
        self.consumer = WebhookConsumer(self.engine, timeout=0.01)

    def tearDown(self):
        self.consumer.stop()

    def test_webhooks_are_ingested_in_order(self):
        self.consumer.start()

        self.consumer.put({'id': 'evt-1'})
        self.consumer.put({'id': 'evt-2'})
        self.consumer.drain()

        self.engine.ingest.assert_has_calls([call({'id': 'evt-1'}), call({'id': 'evt-2'})])

    def test_errors_do_not_stop_the_consumer(self):
        self.engine.ingest.side_effect = [RuntimeError('boom'), None]
        self.consumer.start()

        self.consumer.put({'id': 'evt-1'})
        self.consumer.put({'id': 'evt-2'})
        self.consumer.drain()

        assert_that(self.engine.ingest.call_count, equal_to(2))

    def test_start_twice(self):
        self.consumer.start()

        assert_that(calling(self.consumer.start), raises(RuntimeError, 'already started'))

    def test_projection_through_the_consumer(self):
        engine = CorrelationEngine()
        consumer = WebhookConsumer(engine, timeout=0.01)
        consumer.start()
        try:
            consumer.put(raw_event('evt-1', 'call.initiated', call_control_id='call-1'))
            consumer.put(raw_event('evt-2', 'call.answered', call_control_id='call-1'))
            consumer.put(raw_event('evt-2', 'call.answered', call_control_id='call-1'))
            consumer.drain()
        finally:
            consumer.stop()

        assert_that(engine.project('call-1').state.value, equal_to('answered'))
