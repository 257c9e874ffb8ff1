# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging
import math
from typing import NamedTuple

from marshmallow import EXCLUDE, RAISE, Schema, ValidationError, fields
from marshmallow.validate import OneOf, Range

from .exceptions import InvalidPage

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 250


class PageSchema(Schema):
    class Meta:
        unknown = RAISE

    number = fields.Integer(validate=Range(min=1), load_default=1)
    size = fields.Integer(validate=Range(min=1, max=MAX_PAGE_SIZE), load_default=DEFAULT_PAGE_SIZE)


class _FilterSchema(Schema):
    class Meta:
        unknown = RAISE


class ConferenceFilterSchema(_FilterSchema):
    name = fields.String()
    status = fields.String(validate=OneOf(['init', 'in_progress', 'completed']))


class ParticipantFilterSchema(_FilterSchema):
    muted = fields.Boolean()
    on_hold = fields.Boolean()
    whispering = fields.Boolean()


FILTER_SCHEMAS = {
    'calls': _FilterSchema,
    'conferences': ConferenceFilterSchema,
    'participants': ParticipantFilterSchema,
    'queue_calls': _FilterSchema,
    'faxes': _FilterSchema,
}


def _render(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _attribute(item, name):
    value = getattr(item, name)
    return getattr(value, 'value', value)


class PageCursor:
    '''Stateless description of one page of a listing

    The same cursor always renders the same query: filter keys sorted, then
    the page number and size. Unset filter fields are never rendered.
    '''

    def __init__(self, kind, filter=None, number=1, size=DEFAULT_PAGE_SIZE):
        try:
            filter_schema = FILTER_SCHEMAS[kind]
        except KeyError:
            raise InvalidPage(kind, {'kind': [f'Unknown listing "{kind}"']})

        errors = {}
        try:
            self.filter = filter_schema().load(filter or {})
        except ValidationError as e:
            errors['filter'] = e.messages
        try:
            page = PageSchema().load({'number': number, 'size': size})
        except ValidationError as e:
            errors['page'] = e.messages
        if errors:
            raise InvalidPage(kind, errors)

        self.kind = kind
        self.number = page['number']
        self.size = page['size']

    def __repr__(self):
        return f'<PageCursor {self.kind} filter={self.filter} number={self.number} size={self.size}>'

    def __eq__(self, other):
        if not isinstance(other, PageCursor):
            return NotImplemented
        return self.query_params() == other.query_params() and self.kind == other.kind

    def query_params(self) -> list[tuple[str, str]]:
        params = [
            (f'filter[{key}]', _render(self.filter[key]))
            for key in sorted(self.filter)
            if self.filter[key] is not None
        ]
        params.append(('page[number]', str(self.number)))
        params.append(('page[size]', str(self.size)))
        return params

    def next_page(self) -> PageCursor:
        return PageCursor(self.kind, dict(self.filter), self.number + 1, self.size)

    def matches(self, item) -> bool:
        for key, expected in self.filter.items():
            if _attribute(item, key) != expected:
                return False
        return True

    def slice(self, items) -> Page:
        '''Page through a local, already ordered, sequence'''
        selected = [item for item in items if self.matches(item)]
        start = (self.number - 1) * self.size
        meta = PageMeta(
            total_pages=math.ceil(len(selected) / self.size),
            total_results=len(selected),
            page_number=self.number,
            page_size=self.size,
        )
        return Page(selected[start:start + self.size], meta)


class PageMetaSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    total_pages = fields.Integer(load_default=None, allow_none=True)
    total_results = fields.Integer(load_default=None, allow_none=True)
    page_number = fields.Integer(load_default=None, allow_none=True)
    page_size = fields.Integer(load_default=None, allow_none=True)


class PageMeta(NamedTuple):
    total_pages: int | None
    total_results: int | None
    page_number: int | None
    page_size: int | None

    @classmethod
    def from_dict(cls, meta, cursor=None) -> PageMeta:
        try:
            values = PageMetaSchema().load(meta or {})
        except ValidationError as e:
            logger.warning('ignoring unusable pagination meta: %s', e.messages)
            values = {}
        if cursor is not None:
            values['page_number'] = values.get('page_number') or cursor.number
            values['page_size'] = values.get('page_size') or cursor.size
        return cls(
            values.get('total_pages'),
            values.get('total_results'),
            values.get('page_number'),
            values.get('page_size'),
        )

    @property
    def is_last(self) -> bool:
        if self.total_pages is None or self.page_number is None:
            return True
        return self.page_number >= self.total_pages

    @property
    def complete(self) -> bool:
        '''The page holds the whole listing'''
        if self.total_pages is None:
            return False
        return self.page_number == 1 and self.total_pages <= 1


class Page:
    def __init__(self, items, meta: PageMeta):
        self.items = list(items)
        self.meta = meta

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def __repr__(self):
        return f'<Page {len(self.items)} items meta={self.meta}>'
