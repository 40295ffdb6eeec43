import numpy as np

from ..models import BoundingBox, InputInformation, Pose


def face_center(box: BoundingBox):
    """Center of the bounding box as (x, y)."""
    return (box.left + box.width / 2.0, box.top + box.height / 2.0)


def face_length(box: BoundingBox) -> float:
    """Diagonal of the bounding box. Used as the unit for translational velocity."""
    return float(np.hypot(box.width, box.height))


def estimate_timestamp(info: InputInformation, record_index: int) -> float:
    """
    Frame timestamp from stream metadata.

    Takes the smaller of two estimates: the declared frame offset and the
    record's position in the batch sequence (one second per record). The
    frame offset reported upstream can run ahead of real elapsed time.
    """
    by_offset = info.producer_timestamp + info.frame_offset_in_seconds
    by_index = info.producer_timestamp + record_index
    return min(by_offset, by_index)


def translational_velocity(center, previous_center, box: BoundingBox, delta_time: float) -> float:
    """
    Center displacement in face lengths per unit time.
    Normalizing by the face diagonal keeps the value independent of face size.
    """
    delta_position = np.linalg.norm(np.subtract(center, previous_center))
    return float((delta_position / face_length(box)) / delta_time)


def rotational_velocity(pose: Pose, previous_pose: Pose, delta_time: float) -> float:
    """Euclidean distance over (pitch, roll, yaw) per unit time."""
    delta_rotation = np.linalg.norm(np.subtract(pose.as_tuple(), previous_pose.as_tuple()))
    return float(delta_rotation / delta_time)
