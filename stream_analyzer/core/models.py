import math
from dataclasses import dataclass, field
from typing import Optional, List, Tuple, Dict, Any

from .errors import DetectionValidationError


def _require_number(container: Dict[str, Any], key: str, path: str) -> float:
    """Pull a finite numeric field out of a raw mapping."""
    if not isinstance(container, dict) or key not in container:
        raise DetectionValidationError(f"{path}.{key} is missing")
    value = container[key]
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DetectionValidationError(f"{path}.{key} is not numeric: {value!r}")
    if not math.isfinite(value):
        raise DetectionValidationError(f"{path}.{key} is not finite: {value!r}")
    return float(value)


def _is_finite_number(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and math.isfinite(value)


@dataclass
class BoundingBox:
    """Normalized face geometry as reported by the detector."""
    left: float
    top: float
    width: float
    height: float
    # Derived, recomputed on every pass
    center: Optional[Tuple[float, float]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data, path="BoundingBox") -> "BoundingBox":
        box = cls(
            left=_require_number(data, "Left", path),
            top=_require_number(data, "Top", path),
            width=_require_number(data, "Width", path),
            height=_require_number(data, "Height", path),
        )
        box.extra = {k: v for k, v in data.items() if k not in ("Left", "Top", "Width", "Height", "Center")}
        return box

    def validate(self, path="BoundingBox"):
        for name in ("left", "top", "width", "height"):
            if not _is_finite_number(getattr(self, name)):
                raise DetectionValidationError(f"{path}.{name} is not a finite number: {getattr(self, name)!r}")
        if self.width == 0 and self.height == 0:
            raise DetectionValidationError(f"{path} has zero size")

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "Width": self.width,
            "Height": self.height,
            "Left": self.left,
            "Top": self.top,
        })
        if self.center is not None:
            data["Center"] = [self.center[0], self.center[1]]
        return data


@dataclass
class Pose:
    """Head rotation in degrees."""
    pitch: float
    roll: float
    yaw: float

    @classmethod
    def from_dict(cls, data, path="Pose") -> "Pose":
        return cls(
            pitch=_require_number(data, "Pitch", path),
            roll=_require_number(data, "Roll", path),
            yaw=_require_number(data, "Yaw", path),
        )

    def validate(self, path="Pose"):
        for name in ("pitch", "roll", "yaw"):
            if not _is_finite_number(getattr(self, name)):
                raise DetectionValidationError(f"{path}.{name} is not a finite number: {getattr(self, name)!r}")

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.pitch, self.roll, self.yaw)

    def to_dict(self) -> Dict[str, Any]:
        return {"Roll": self.roll, "Yaw": self.yaw, "Pitch": self.pitch}


@dataclass
class DetectedFace:
    """
    A single face within a frame.
    Everything below `pose` is derived by the face track processor.
    """
    bounding_box: BoundingBox
    pose: Pose
    timestamp: Optional[float] = None
    record_index: Optional[int] = None
    translational_velocity: Optional[float] = None
    rotational_velocity: Optional[float] = None
    # Confidence, Landmarks, Quality etc. pass through untouched
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def center(self) -> Optional[Tuple[float, float]]:
        return self.bounding_box.center

    @classmethod
    def from_dict(cls, data, path="DetectedFace") -> "DetectedFace":
        if not isinstance(data, dict):
            raise DetectionValidationError(f"{path} is not an object")
        if "BoundingBox" not in data:
            raise DetectionValidationError(f"{path}.BoundingBox is missing")
        if "Pose" not in data:
            raise DetectionValidationError(f"{path}.Pose is missing")
        derived = ("BoundingBox", "Pose", "Timestamp", "RecordIndex",
                   "TranslationalVelocity", "RotationalVelocity")
        return cls(
            bounding_box=BoundingBox.from_dict(data["BoundingBox"], f"{path}.BoundingBox"),
            pose=Pose.from_dict(data["Pose"], f"{path}.Pose"),
            extra={k: v for k, v in data.items() if k not in derived},
        )

    def validate(self, path="DetectedFace"):
        if not isinstance(self.bounding_box, BoundingBox):
            raise DetectionValidationError(f"{path}.BoundingBox is missing")
        if not isinstance(self.pose, Pose):
            raise DetectionValidationError(f"{path}.Pose is missing")
        self.bounding_box.validate(f"{path}.BoundingBox")
        self.pose.validate(f"{path}.Pose")

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data["BoundingBox"] = self.bounding_box.to_dict()
        data["Pose"] = self.pose.to_dict()
        if self.record_index is not None:
            data["RecordIndex"] = self.record_index
        if self.timestamp is not None:
            data["Timestamp"] = self.timestamp
        # Absent rather than null when the derivative was not computable
        if self.translational_velocity is not None:
            data["TranslationalVelocity"] = self.translational_velocity
        if self.rotational_velocity is not None:
            data["RotationalVelocity"] = self.rotational_velocity
        return data


@dataclass
class FaceSearchResult:
    """One entry of FaceSearchResponse: the detection plus its gallery matches."""
    detected_face: DetectedFace
    # None when the upstream entry carried no MatchedFaces key
    matched_faces: Optional[List[Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data, path="FaceSearchResponse") -> "FaceSearchResult":
        if not isinstance(data, dict) or "DetectedFace" not in data:
            raise DetectionValidationError(f"{path}.DetectedFace is missing")
        return cls(
            detected_face=DetectedFace.from_dict(data["DetectedFace"], f"{path}.DetectedFace"),
            matched_faces=data.get("MatchedFaces"),
            extra={k: v for k, v in data.items() if k not in ("DetectedFace", "MatchedFaces")},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data["DetectedFace"] = self.detected_face.to_dict()
        if self.matched_faces is not None:
            data["MatchedFaces"] = self.matched_faces
        return data


@dataclass
class InputInformation:
    """Frame timing metadata (InputInformation.KinesisVideo)."""
    producer_timestamp: float
    frame_offset_in_seconds: float
    # StreamArn, FragmentNumber, ServerTimestamp
    video_extra: Dict[str, Any] = field(default_factory=dict)
    # Keys beside KinesisVideo
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data, path="InputInformation") -> "InputInformation":
        video = data.get("KinesisVideo") if isinstance(data, dict) else None
        video_path = f"{path}.KinesisVideo"
        if not isinstance(video, dict):
            raise DetectionValidationError(f"{video_path} is missing")
        return cls(
            producer_timestamp=_require_number(video, "ProducerTimestamp", video_path),
            frame_offset_in_seconds=_require_number(video, "FrameOffsetInSeconds", video_path),
            video_extra={k: v for k, v in video.items() if k not in ("ProducerTimestamp", "FrameOffsetInSeconds")},
            extra={k: v for k, v in data.items() if k != "KinesisVideo"},
        )

    def validate(self, path="InputInformation.KinesisVideo"):
        for name in ("producer_timestamp", "frame_offset_in_seconds"):
            if not _is_finite_number(getattr(self, name)):
                raise DetectionValidationError(f"{path}.{name} is not a finite number: {getattr(self, name)!r}")

    def to_dict(self) -> Dict[str, Any]:
        video = dict(self.video_extra)
        video["ProducerTimestamp"] = self.producer_timestamp
        video["FrameOffsetInSeconds"] = self.frame_offset_in_seconds
        data = dict(self.extra)
        data["KinesisVideo"] = video
        return data


@dataclass
class FrameBatch:
    """Detection results for one video frame."""
    input_information: InputInformation
    face_search_response: List[FaceSearchResult] = field(default_factory=list)
    sequence_index: Optional[int] = None
    # StreamProcessorInformation and anything else we don't model
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def detections(self) -> List[DetectedFace]:
        return [result.detected_face for result in self.face_search_response]

    @property
    def has_faces(self) -> bool:
        return len(self.face_search_response) > 0

    @classmethod
    def from_dict(cls, data) -> "FrameBatch":
        if not isinstance(data, dict):
            raise DetectionValidationError("Record is not an object")
        if "InputInformation" not in data:
            raise DetectionValidationError("InputInformation is missing")
        results = data.get("FaceSearchResponse") or []
        if not isinstance(results, list):
            raise DetectionValidationError("FaceSearchResponse is not a list")
        return cls(
            input_information=InputInformation.from_dict(data["InputInformation"]),
            face_search_response=[
                FaceSearchResult.from_dict(entry, f"FaceSearchResponse[{i}]")
                for i, entry in enumerate(results)
            ],
            extra={k: v for k, v in data.items() if k not in ("InputInformation", "FaceSearchResponse")},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data["InputInformation"] = self.input_information.to_dict()
        data["FaceSearchResponse"] = [result.to_dict() for result in self.face_search_response]
        return data
