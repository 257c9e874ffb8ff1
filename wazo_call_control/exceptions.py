# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

import logging

logger = logging.getLogger(__name__)


class APIException(Exception):
    def __init__(self, status_code, message, error_id, details=None, resource=None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.id_ = error_id
        self.details = details or {}
        self.resource = resource

    def to_dict(self):
        return {
            'message': self.message,
            'error_id': self.id_,
            'details': self.details,
            'resource': self.resource,
        }


class CommandRejected(APIException):
    '''The remote platform refused the command. Never retried.'''

    def __init__(self, command_name, status_code, errors=None):
        errors = errors or []
        titles = ', '.join(error.get('title') or error.get('code', '') for error in errors)
        super().__init__(
            status_code=status_code,
            message=f'Command "{command_name}" rejected: {titles or "no detail"}',
            error_id='command-rejected',
            details={
                'command': command_name,
                'errors': errors,
            },
        )
        self.command_name = command_name
        self.errors = errors


class TransportError(APIException):
    '''The outcome of the command is unknown: it may or may not have run.'''

    def __init__(self, command_name, original_error):
        super().__init__(
            status_code=503,
            message=f'Command "{command_name}" outcome unknown: transport failure',
            error_id='transport-error',
            details={
                'command': command_name,
                'original_error': str(original_error),
            },
        )
        self.command_name = command_name
        self.original_error = original_error


class NoSuchResource(APIException):
    def __init__(self, kind, resource_id):
        super().__init__(
            status_code=404,
            message=f'No such {kind}: "{resource_id}"',
            error_id=f'no-such-{kind}',
            resource=kind,
            details={'resource_id': resource_id},
        )
        self.kind = kind
        self.resource_id = resource_id
