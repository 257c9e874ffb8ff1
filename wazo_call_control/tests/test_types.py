# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from unittest import TestCase

from hamcrest import assert_that, equal_to, is_, none

from ..types import CallState, DequeueReason, FaxDirection, FaxStatus


class TestRemoteValue(TestCase):
    def test_unrecognized_values_are_unknown(self):
        assert_that(CallState('ringing'), equal_to(CallState.unknown))
        assert_that(DequeueReason('bridging-in-process'), equal_to(DequeueReason.bridging_in_process))

    def test_parse(self):
        assert_that(DequeueReason.parse(None), none())
        assert_that(DequeueReason.parse('timeout'), equal_to(DequeueReason.timeout))

    def test_str(self):
        assert_that(str(CallState.bridged), equal_to('bridged'))


class TestCallState(TestCase):
    def test_rank(self):
        states = [
            CallState.unknown,
            CallState.parked,
            CallState.bridging,
            CallState.answered,
            CallState.bridged,
            CallState.hangup,
        ]

        assert_that(sorted(states, key=lambda state: state.rank), equal_to(states))
        assert_that(CallState.hangup.terminal, is_(True))


class TestFaxStatus(TestCase):
    def test_rank_depends_on_direction(self):
        assert_that(FaxStatus.received.rank(FaxDirection.inbound), equal_to(2))
        assert_that(FaxStatus.received.rank(FaxDirection.outbound), equal_to(-1))
        assert_that(FaxStatus.sending.rank(FaxDirection.outbound), equal_to(4))

    def test_terminal(self):
        assert_that(FaxStatus.failed.terminal, is_(True))
        assert_that(FaxStatus.originated.terminal, is_(False))
