# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging
from time import monotonic_ns
from typing import NamedTuple
from urllib.parse import quote

from marshmallow import ValidationError

from . import registry
from .exceptions import InvalidCommand, MissingTarget, UnknownCommand

logger = logging.getLogger(__name__)


class CommandRequest(NamedTuple):
    method: str
    path: str
    body: dict | None
    query: list[tuple[str, str]]
    name: str | None = None


class Command:
    '''A validated call control operation

    ``params`` are the request body fields; use ``from_`` for ``from``.
    '''

    def __init__(self, command_name, target_id=None, sub_id=None, query=None, **params):
        try:
            self.descriptor = registry.get(command_name)
        except KeyError:
            raise UnknownCommand(command_name)

        if self.descriptor.target and not target_id:
            raise MissingTarget(command_name, self.descriptor.target)
        if '{sub_id}' in self.descriptor.path and not sub_id:
            raise MissingTarget(command_name, 'sub-resource')

        if 'from_' in params:
            params['from'] = params.pop('from_')

        self._schema = self.descriptor.schema()
        try:
            self.body = self._schema.load(params)
        except ValidationError as e:
            raise InvalidCommand(command_name, e.messages)

        self.name = command_name
        self.target_id = target_id
        self.sub_id = sub_id
        self.query = list(query or [])

    def __repr__(self):
        return f'<Command {self.name} target={self.target_id} command_id={self.command_id}>'

    @property
    def kind(self):
        return self.descriptor.target

    @property
    def command_id(self) -> str | None:
        return self.body.get('command_id')

    @property
    def client_state(self) -> str | None:
        return self.body.get('client_state')

    @property
    def resource_id(self) -> str | None:
        if self.descriptor.scope_field:
            return self.body.get(self.descriptor.scope_field)
        return self.target_id

    @property
    def scope(self):
        return self.descriptor.scope

    def effective(self, field):
        if field in self.body:
            return self.body[field]
        return self.descriptor.schema.platform_defaults.get(field)

    def request(self) -> CommandRequest:
        path = self.descriptor.path.format(
            id=quote(str(self.target_id or ''), safe=''),
            sub_id=quote(str(self.sub_id or ''), safe=''),
        )
        if self.descriptor.method in ('GET', 'DELETE'):
            body = None
        else:
            body = self._schema.dump(self.body)
        return CommandRequest(self.descriptor.method, path, body, self.query, self.name)


class Acknowledgment:
    '''Immediate answer of the platform: the command was accepted

    It never means the command completed; the outcome arrives as events.
    '''

    def __init__(self, command, data=None, meta=None, acknowledged_at=None):
        self.command = command
        self.data = data if data is not None else {}
        self.meta = meta or {}
        if isinstance(self.data, dict):
            self.result = self.data.get('result', 'ok')
        else:
            self.result = 'ok'
        self.acknowledged_at = acknowledged_at or monotonic_ns()

    @classmethod
    def from_response(cls, command, document):
        '''Responses carry the entity under ``data``, listings add ``meta``'''
        if isinstance(document, dict) and 'data' in document:
            return cls(command, document['data'], document.get('meta'))
        return cls(command, document)

    def __repr__(self):
        return f'<Acknowledgment {self.command.name} result={self.result}>'

    @property
    def ok(self):
        return self.result == 'ok'
