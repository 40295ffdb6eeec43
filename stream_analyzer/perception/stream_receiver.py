import json
import threading
import time
from collections import deque

import zmq

from ..core.errors import RecordDecodeError
from ..logger import get_logger


class RecordWindow:
    """
    Accumulates raw records into invocation-sized windows.
    A window is ready once it holds `max_records` records or `max_seconds`
    have passed since its first record arrived.
    """
    def __init__(self, max_records=100, max_seconds=1.0, clock=time.monotonic):
        self.max_records = max_records
        self.max_seconds = max_seconds
        self.clock = clock
        self.records = deque()
        self.opened_at = None

    def __len__(self):
        return len(self.records)

    def add(self, record):
        if not self.records:
            self.opened_at = self.clock()
        self.records.append(record)

    def is_ready(self):
        if not self.records:
            return False
        if len(self.records) >= self.max_records:
            return True
        return (self.clock() - self.opened_at) >= self.max_seconds

    def drain(self):
        """Return the buffered records in arrival order and start a new window."""
        records = list(self.records)
        self.records.clear()
        self.opened_at = None
        return records


def parse_payload(data):
    """Raw stream frames carry either a JSON envelope or bare base64 data."""
    if data[:1] == b"{":
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RecordDecodeError(f"Payload is not a JSON envelope: {e}") from e
    return bytes(data)


class StreamReceiver(threading.Thread):
    """
    Subscribes to the raw face-search stream and hands each completed window
    of records to `callback(records)` on this thread.
    Protocol: [Topic, Payload]
    """
    def __init__(self, stream_uri="tcp://localhost:5570", topic="faces", window_size=100, window_seconds=1.0):
        super().__init__()
        self.logger = get_logger(self.__class__.__name__)
        self.stream_uri = stream_uri
        self.topic = topic
        self.window = RecordWindow(window_size, window_seconds)
        self.running = False
        self.callback = None
        self.daemon = True

    def start_receiving(self, callback):
        """Register a callback(records) to be called on each window."""
        self.callback = callback
        self.start()

    def stop(self):
        self.running = False
        if self.is_alive():
            self.join()

    def run(self):
        self.running = True
        context = zmq.Context()
        socket = context.socket(zmq.SUB)
        socket.connect(self.stream_uri)
        socket.setsockopt_string(zmq.SUBSCRIBE, self.topic)
        self.logger.info("StreamSubscribed", {"uri": self.stream_uri, "topic": self.topic})

        try:
            while self.running:
                if socket.poll(100):
                    msg = socket.recv_multipart()
                    if len(msg) != 2:
                        self.logger.warning("InvalidMessage", {"frames": len(msg)})
                        continue
                    try:
                        self.window.add(parse_payload(msg[1]))
                    except RecordDecodeError as e:
                        self.logger.warning("InvalidPayload", {"error": str(e)})
                        continue

                if self.window.is_ready():
                    self._dispatch(self.window.drain())

            # Flush whatever arrived before shutdown
            if len(self.window):
                self._dispatch(self.window.drain())
        finally:
            socket.close()
            context.term()

    def _dispatch(self, records):
        if self.callback is None:
            return
        try:
            result = self.callback(records)
            self.logger.info("WindowHandled", {"records": len(records), "result": getattr(result, "message", result)})
        except Exception as e:
            # A failed window is reported and dropped; the next window starts clean
            self.logger.error("WindowFailed", {"records": len(records), "error": str(e)}, exc_info=True)
