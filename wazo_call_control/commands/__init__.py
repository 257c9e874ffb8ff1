# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from .command import Acknowledgment, Command, CommandRequest
from .exceptions import InvalidCommand, MissingTarget, UnknownCommand

__all__ = [
    'Acknowledgment',
    'Command',
    'CommandRequest',
    'InvalidCommand',
    'MissingTarget',
    'UnknownCommand',
]
