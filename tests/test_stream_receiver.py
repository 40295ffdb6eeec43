import sys
import os
import json
import unittest
from unittest.mock import MagicMock

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from stream_analyzer.core.errors import RecordDecodeError
from stream_analyzer.perception.stream_receiver import RecordWindow, StreamReceiver, parse_payload


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestRecordWindow(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.window = RecordWindow(max_records=3, max_seconds=1.0, clock=self.clock)

    def test_empty_window_never_ready(self):
        self.clock.now = 100.0
        self.assertFalse(self.window.is_ready())

    def test_ready_when_full(self):
        for i in range(3):
            self.assertFalse(self.window.is_ready())
            self.window.add(i)
        self.assertTrue(self.window.is_ready())
        self.assertEqual(self.window.drain(), [0, 1, 2])
        self.assertEqual(len(self.window), 0)

    def test_ready_after_timeout_from_first_record(self):
        self.window.add("a")
        self.clock.now = 0.5
        self.window.add("b")
        self.assertFalse(self.window.is_ready())
        self.clock.now = 1.0
        self.assertTrue(self.window.is_ready())
        self.assertEqual(self.window.drain(), ["a", "b"])

        # New window timer starts at its own first record
        self.clock.now = 1.5
        self.window.add("c")
        self.clock.now = 2.0
        self.assertFalse(self.window.is_ready())


class TestParsePayload(unittest.TestCase):
    def test_json_envelope(self):
        envelope = {"kinesis": {"data": "e30="}}
        self.assertEqual(parse_payload(json.dumps(envelope).encode()), envelope)

    def test_bare_base64(self):
        self.assertEqual(parse_payload(b"e30="), b"e30=")

    def test_broken_envelope_raises_decode_error(self):
        with self.assertRaises(RecordDecodeError):
            parse_payload(b"{not json")
        with self.assertRaises(RecordDecodeError):
            parse_payload(b"{\xff\xfe}")


class TestDispatch(unittest.TestCase):
    def test_callback_receives_records(self):
        receiver = StreamReceiver()
        receiver.callback = MagicMock(return_value=None)
        receiver._dispatch(["a", "b"])
        receiver.callback.assert_called_once_with(["a", "b"])

    def test_callback_failure_does_not_escape(self):
        """A failing window is logged and dropped so the receiver keeps running."""
        receiver = StreamReceiver()
        receiver.callback = MagicMock(side_effect=RuntimeError("sink down"))
        receiver._dispatch(["a"])
        receiver.callback.assert_called_once()


if __name__ == "__main__":
    unittest.main()
