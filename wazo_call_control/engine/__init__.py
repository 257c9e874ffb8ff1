# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from .engine import CorrelationEngine, Outcome
from .exceptions import PreflightRejected
from .webhooks import WebhookConsumer

__all__ = [
    'CorrelationEngine',
    'Outcome',
    'PreflightRejected',
    'WebhookConsumer',
]
