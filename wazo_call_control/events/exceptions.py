# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from wazo_call_control.exceptions import APIException


class MalformedEvent(APIException):
    def __init__(self, event_id, errors):
        super().__init__(
            status_code=400,
            message='Malformed event payload',
            error_id='malformed-event',
            details={'event_id': event_id, 'errors': errors},
        )
        self.event_id = event_id
        self.errors = errors
