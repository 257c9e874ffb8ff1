# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from wazo_call_control.exceptions import APIException


class PreflightRejected(APIException):
    '''Best-effort local check: the platform would most likely refuse'''

    def __init__(self, command_name, resource_id, reason):
        super().__init__(
            status_code=409,
            message=f'Command "{command_name}" refused before sending: {reason}',
            error_id='preflight-rejected',
            details={'command': command_name, 'reason': reason},
            resource=resource_id,
        )
        self.command_name = command_name
        self.reason = reason
