# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from marshmallow import fields


class OneOrMany(fields.Field):
    '''A string or a list of strings, as accepted by the ``to`` of a dial'''

    default_error_messages = {
        'invalid': 'Not a valid string or list of strings.',
        'empty': 'Must not be empty.',
    }

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str):
            if not value:
                raise self.make_error('empty')
            return value
        if isinstance(value, (list, tuple)):
            if not value:
                raise self.make_error('empty')
            if not all(isinstance(item, str) and item for item in value):
                raise self.make_error('invalid')
            return list(value)
        raise self.make_error('invalid')

    def _serialize(self, value, attr, obj, **kwargs):
        if isinstance(value, (list, tuple)):
            return list(value)
        return value
