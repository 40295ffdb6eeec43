from typing import Dict, List, Optional, Sequence

from ...logger import get_logger
from ..errors import InsufficientDataError
from ..models import DetectedFace, FrameBatch
from . import kinematics

logger = get_logger("FaceTrackProcessor")


class SlotBuffer:
    """
    Last-seen face per slot (position in FaceSearchResponse).

    Slot i of a frame is taken to be the same person as slot i of the most
    recent frame that had one. Faces that swap positions between frames are
    not re-associated.
    """
    def __init__(self):
        self._faces: Dict[int, DetectedFace] = {}

    def get(self, slot: int) -> Optional[DetectedFace]:
        return self._faces.get(slot)

    def update(self, slot: int, face: DetectedFace):
        self._faces[slot] = face


class FaceTrackProcessor:
    """
    Pure domain logic for face motion.
    Inputs: ordered frame batches with at least one face each.
    Outputs: the same batches annotated with center, timestamp and velocities.

    The processor keeps no state between calls; every `annotate` gets a fresh
    SlotBuffer, so one instance can serve independent streams.
    """
    min_batches = 2

    def __init__(self, zero_velocity_on_first_sighting=False):
        self.zero_velocity_on_first_sighting = zero_velocity_on_first_sighting

    def process(self, batches: Sequence[FrameBatch]) -> List[FrameBatch]:
        """
        Annotate every batch and return all but the first.

        The first batch is only the baseline for the second one's deltas and
        is not published, even though its faces are annotated too.

        Raises:
            InsufficientDataError: fewer than two batches.
            DetectionValidationError: malformed geometry, pose or timing.
        """
        self.annotate(batches)
        return list(batches[1:])

    def annotate(self, batches: Sequence[FrameBatch]):
        if len(batches) < self.min_batches:
            raise InsufficientDataError(len(batches), self.min_batches)

        buffer = SlotBuffer()
        for index, batch in enumerate(batches):
            batch.sequence_index = index
            batch.input_information.validate()
            for slot, face in enumerate(batch.detections):
                face.validate(f"FaceSearchResponse[{slot}].DetectedFace")
                previous = buffer.get(slot)
                self._process_face(face, previous, batch, index)
                buffer.update(slot, face)

    def _process_face(self, face: DetectedFace, previous: Optional[DetectedFace], batch: FrameBatch, index: int):
        face.bounding_box.center = kinematics.face_center(face.bounding_box)
        face.record_index = index
        face.timestamp = kinematics.estimate_timestamp(batch.input_information, index)
        face.translational_velocity = None
        face.rotational_velocity = None

        first_sighting = previous is None
        if first_sighting:
            # Bootstrap against itself: zero deltas everywhere
            previous = face

        delta_time = face.timestamp - previous.timestamp
        if delta_time == 0:
            if first_sighting and self.zero_velocity_on_first_sighting:
                face.translational_velocity = 0.0
                face.rotational_velocity = 0.0
            elif not first_sighting:
                logger.debug("ZeroTimeDelta", {"record_index": index, "timestamp": face.timestamp})
            return

        face.translational_velocity = kinematics.translational_velocity(
            face.center, previous.center, face.bounding_box, delta_time
        )
        face.rotational_velocity = kinematics.rotational_velocity(face.pose, previous.pose, delta_time)
