# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from .cursor import Page, PageCursor, PageMeta
from .exceptions import InvalidPage

__all__ = [
    'InvalidPage',
    'Page',
    'PageCursor',
    'PageMeta',
]
