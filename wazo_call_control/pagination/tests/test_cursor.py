# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from types import SimpleNamespace
from unittest import TestCase

from hamcrest import (
    assert_that,
    calling,
    contains_exactly,
    empty,
    equal_to,
    has_key,
    is_,
    raises,
)

from ..cursor import PageCursor, PageMeta
from ..exceptions import InvalidPage


class TestPageCursor(TestCase):
    def test_defaults(self):
        cursor = PageCursor('conferences')

        assert_that(
            cursor.query_params(),
            contains_exactly(('page[number]', '1'), ('page[size]', '20')),
        )

    def test_filters_are_sorted_before_the_page(self):
        cursor = PageCursor('participants', {'on_hold': True, 'muted': False}, number=2, size=50)

        assert_that(
            cursor.query_params(),
            contains_exactly(
                ('filter[muted]', 'false'),
                ('filter[on_hold]', 'true'),
                ('page[number]', '2'),
                ('page[size]', '50'),
            ),
        )

    def test_same_cursor_same_query(self):
        first = PageCursor('conferences', {'status': 'init', 'name': 'standup'})
        second = PageCursor('conferences', {'name': 'standup', 'status': 'init'})

        assert_that(first.query_params(), equal_to(second.query_params()))
        assert_that(first, equal_to(second))

    def test_page_bounds(self):
        for number, size in ((0, 20), (1, 0), (1, 251), (-1, 20)):
            assert_that(
                calling(PageCursor).with_args('calls', number=number, size=size),
                raises(InvalidPage),
                f'{number} {size}',
            )
        PageCursor('calls', number=1, size=250)

    def test_invalid_filter(self):
        assert_that(
            calling(PageCursor).with_args('conferences', {'status': 'finished'}),
            raises(InvalidPage),
        )
        assert_that(
            calling(PageCursor).with_args('calls', {'state': 'parked'}),
            raises(InvalidPage),
        )

    def test_errors_are_collected(self):
        try:
            PageCursor('conferences', {'status': 'finished'}, number=0)
        except InvalidPage as e:
            assert_that(e.details, has_key('filter'))
            assert_that(e.details, has_key('page'))
        else:
            self.fail('InvalidPage not raised')

    def test_unknown_kind(self):
        assert_that(calling(PageCursor).with_args('trunks'), raises(InvalidPage))

    def test_next_page(self):
        cursor = PageCursor('conferences', {'name': 'standup'}, number=1, size=5)

        next_cursor = cursor.next_page()

        assert_that(next_cursor.number, equal_to(2))
        assert_that(next_cursor.filter, equal_to({'name': 'standup'}))

    def test_slice(self):
        items = [SimpleNamespace(id=str(i), muted=i % 2 == 0, on_hold=False) for i in range(7)]
        cursor = PageCursor('participants', {'muted': True}, number=2, size=3)

        page = cursor.slice(items)

        assert_that([item.id for item in page], contains_exactly('6'))
        assert_that(page.meta, equal_to(PageMeta(2, 4, 2, 3)))

    def test_slice_past_the_end(self):
        page = PageCursor('calls', number=3).slice([])

        assert_that(page.items, empty())
        assert_that(page.meta.total_results, equal_to(0))


class TestPageMeta(TestCase):
    def test_from_dict(self):
        meta = PageMeta.from_dict(
            {'total_pages': 3, 'total_results': 55, 'page_number': 2, 'page_size': 20, 'extra': 1}
        )

        assert_that(meta, equal_to(PageMeta(3, 55, 2, 20)))
        assert_that(meta.is_last, is_(False))
        assert_that(meta.complete, is_(False))

    def test_cursor_fills_the_gaps(self):
        meta = PageMeta.from_dict({'total_pages': 1}, PageCursor('calls', size=10))

        assert_that(meta, equal_to(PageMeta(1, None, 1, 10)))
        assert_that(meta.is_last, is_(True))
        assert_that(meta.complete, is_(True))

    def test_missing_meta_is_not_complete(self):
        meta = PageMeta.from_dict(None, PageCursor('participants'))

        assert_that(meta, equal_to(PageMeta(None, None, 1, 20)))
        assert_that(meta.is_last, is_(True))
        assert_that(meta.complete, is_(False))

    def test_unusable_meta(self):
        meta = PageMeta.from_dict({'total_pages': 'many'})

        assert_that(meta, equal_to(PageMeta(None, None, None, None)))
        assert_that(meta.is_last, is_(True))
        assert_that(meta.complete, is_(False))
