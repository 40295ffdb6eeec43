import json
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

import zmq

from ..core.errors import PublishError
from ..core.models import FrameBatch
from ..logger import get_logger


class BaseResultPublisher(ABC):
    """
    Base class for downstream sinks.
    Each batch becomes one message {"Data": <json>, "PartitionKey": <key>}
    and all messages of an invocation go out in a single put_records call.
    """
    def __init__(self, stream_name, partition_key="shard-0"):
        self.logger = get_logger(self.__class__.__name__)
        self.stream_name = stream_name
        self.partition_key = partition_key

    def package_records(self, batches: Sequence[FrameBatch]) -> List[Dict[str, Any]]:
        return [
            {
                "Data": json.dumps(batch.to_dict()),
                "PartitionKey": self.partition_key,
            }
            for batch in batches
        ]

    def put_records(self, batches: Sequence[FrameBatch]) -> Dict[str, Any]:
        """
        Publish the annotated batches.

        Returns:
            dict: {"FailedRecordCount": 0, "RecordCount": n}

        Raises:
            PublishError: if any record was rejected. Nothing is retried.
        """
        records = self.package_records(batches)
        if not records:
            return {"FailedRecordCount": 0, "RecordCount": 0}

        failed = self._put(records)
        if failed:
            self.logger.error("PutRecordsFailed", {
                "stream": self.stream_name,
                "failed": failed,
                "total": len(records),
            })
            raise PublishError(
                f"{failed} of {len(records)} records failed to publish to {self.stream_name}",
                failed_record_count=failed,
                total_record_count=len(records),
            )
        self.logger.info("PutRecords", {"stream": self.stream_name, "count": len(records)})
        return {"FailedRecordCount": 0, "RecordCount": len(records)}

    @abstractmethod
    def _put(self, records: List[Dict[str, Any]]) -> int:
        """Send packaged records, returning how many failed."""

    def close(self):
        pass


class ZmqResultPublisher(BaseResultPublisher):
    """
    Pushes processed records to downstream consumers over a ZMQ PUSH socket.
    Protocol: [StreamName, PartitionKey, DataJSON] per record.
    PUSH refuses a non-blocking send when no consumer is connected or the
    high-water mark is reached; those records count as failed.
    """
    def __init__(self, address="tcp://*:5571", stream_name="processed-faces", partition_key="shard-0",
                 bind=True, send_hwm=1000):
        super().__init__(stream_name, partition_key)
        self.address = address
        self.context = zmq.Context()
        self.socket = self.context.socket(zmq.PUSH)
        self.socket.setsockopt(zmq.SNDHWM, send_hwm)
        self.socket.setsockopt(zmq.LINGER, 0)
        if bind:
            self.socket.bind(address)
        else:
            self.socket.connect(address)

    def _put(self, records):
        failed = 0
        for record in records:
            try:
                self.socket.send_multipart([
                    self.stream_name.encode(),
                    record["PartitionKey"].encode(),
                    record["Data"].encode(),
                ], flags=zmq.NOBLOCK)
            except zmq.Again:
                # No consumer, or high-water mark reached
                failed += 1
        return failed

    def close(self):
        self.socket.close()
        self.context.term()


class FileResultPublisher(BaseResultPublisher):
    """Appends packaged records as JSON lines. Used for replays and offline analysis."""
    def __init__(self, path, stream_name="processed-faces", partition_key="shard-0"):
        super().__init__(stream_name, partition_key)
        self.path = path
        if os.path.dirname(path):
            os.makedirs(os.path.dirname(path), exist_ok=True)

    def _put(self, records):
        try:
            with open(self.path, "a") as f:
                for record in records:
                    f.write(json.dumps(record) + "\n")
        except OSError as e:
            raise PublishError(
                f"Could not write to {self.path}: {e}",
                failed_record_count=len(records),
                total_record_count=len(records),
            ) from e
        return 0
