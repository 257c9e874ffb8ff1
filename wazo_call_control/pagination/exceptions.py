# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from wazo_call_control.exceptions import APIException


class InvalidPage(APIException):
    def __init__(self, kind, errors):
        super().__init__(
            status_code=400,
            message=f'Invalid listing of {kind}',
            error_id='invalid-page',
            details=errors,
            resource=kind,
        )
        self.errors = errors
