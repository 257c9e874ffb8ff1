# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from wazo_call_control.exceptions import APIException


class UnknownCommand(APIException):
    def __init__(self, name):
        super().__init__(
            status_code=400,
            message=f'Unknown command "{name}"',
            error_id='unknown-command',
            details={'command': name},
        )


class InvalidCommand(APIException):
    def __init__(self, name, errors):
        super().__init__(
            status_code=400,
            message=f'Invalid "{name}" command',
            error_id='invalid-command',
            details={'command': name, 'errors': errors},
        )


class MissingTarget(APIException):
    def __init__(self, name, target):
        super().__init__(
            status_code=400,
            message=f'Command "{name}" requires a {target} identifier',
            error_id='missing-target',
            details={'command': name, 'target': target},
        )
