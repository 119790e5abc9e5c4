"""Tests for the listener registry and the debounce scheduler."""

from __future__ import annotations

import asyncio
import unittest

from smartsearch.debounce import Debouncer
from smartsearch.signal import Signal


class SignalTests(unittest.TestCase):
    def test_emit_calls_handlers_in_connection_order(self) -> None:
        signal = Signal()
        calls: list[str] = []
        signal.connect(lambda: calls.append("a"))
        signal.connect(lambda: calls.append("b"))
        signal.emit()
        self.assertEqual(calls, ["a", "b"])

    def test_duplicate_connect_collapses(self) -> None:
        signal = Signal()
        calls: list[int] = []

        def handler() -> None:
            calls.append(1)

        signal.connect(handler)
        signal.connect(handler)
        signal.emit()
        self.assertEqual(calls, [1])
        self.assertEqual(signal.handler_count, 1)

    def test_disconnect_unknown_handler_is_ignored(self) -> None:
        signal = Signal()
        signal.disconnect(lambda: None)
        self.assertEqual(signal.handler_count, 0)

    def test_failing_handler_is_logged_and_others_still_run(self) -> None:
        signal = Signal()
        calls: list[str] = []

        def broken() -> None:
            raise RuntimeError("boom")

        signal.connect(broken)
        signal.connect(lambda: calls.append("after"))
        with self.assertLogs("smartsearch.signal", level="ERROR"):
            signal.emit()
        self.assertEqual(calls, ["after"])

    def test_handler_may_disconnect_itself_during_emit(self) -> None:
        signal = Signal()
        calls: list[str] = []

        def once() -> None:
            calls.append("once")
            signal.disconnect(once)

        signal.connect(once)
        signal.connect(lambda: calls.append("other"))
        signal.emit()
        signal.emit()
        self.assertEqual(calls, ["once", "other", "other"])


class DebouncerSyncTests(unittest.TestCase):
    def test_runs_immediately_without_event_loop(self) -> None:
        debouncer = Debouncer(0.3)
        calls: list[str] = []
        debouncer.call(calls.append, "now")
        self.assertEqual(calls, ["now"])
        self.assertFalse(debouncer.pending)

    def test_negative_delay_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Debouncer(-1)


class DebouncerAsyncTests(unittest.IsolatedAsyncioTestCase):
    async def test_burst_collapses_to_last_call(self) -> None:
        debouncer = Debouncer(0.02)
        calls: list[str] = []
        debouncer.call(calls.append, "a")
        debouncer.call(calls.append, "ap")
        debouncer.call(calls.append, "app")
        self.assertTrue(debouncer.pending)
        self.assertEqual(calls, [])

        await asyncio.sleep(0.1)

        self.assertEqual(calls, ["app"])
        self.assertFalse(debouncer.pending)

    async def test_cancel_drops_pending_call(self) -> None:
        debouncer = Debouncer(0.01)
        calls: list[str] = []
        debouncer.call(calls.append, "x")
        debouncer.cancel()
        await asyncio.sleep(0.05)
        self.assertEqual(calls, [])


if __name__ == "__main__":
    unittest.main()
