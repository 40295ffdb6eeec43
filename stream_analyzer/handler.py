# One invocation of the pipeline: decode, filter, annotate, publish
from dataclasses import dataclass

from .core.errors import InsufficientDataError
from .core.tracking.face_tracker import FaceTrackProcessor
from .io.decoder import FrameBatchDecoder
from .logger import get_logger

logger = get_logger("RecordHandler")

STATUS_COMPLETE = "complete"
STATUS_INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class HandlerResult:
    """Outcome of one invocation."""
    status: str
    message: str
    published: int = 0


class RecordHandler:
    """
    Runs the face motion pipeline over one window of raw stream records.

    Decode and validation errors abort the window before anything is
    published. Publish errors propagate to the caller unchanged.
    """
    def __init__(self, publisher, processor=None, decoder=None):
        self.publisher = publisher
        self.processor = processor or FaceTrackProcessor()
        self.decoder = decoder or FrameBatchDecoder()

    def handle(self, raw_records) -> HandlerResult:
        raw_records = list(raw_records)
        batches = self.decoder.decode(raw_records)

        try:
            output = self.processor.process(batches)
        except InsufficientDataError as e:
            logger.info("InsufficientData", {"received": len(raw_records), "with_faces": e.count})
            return HandlerResult(STATUS_INSUFFICIENT_DATA, "Not enough records to process.")

        self.publisher.put_records(output)

        first_face = output[0].detections[0]
        last_face = output[-1].detections[0]
        logger.info("FaceRecordsProcessed", {
            "count": len(output),
            "start": first_face.timestamp,
            "end": last_face.timestamp,
        })
        return HandlerResult(STATUS_COMPLETE, "Processing complete.", published=len(output))

    # Lets the handler be passed straight to StreamReceiver as its callback
    __call__ = handle
