import sys
import os
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from stream_analyzer.core.errors import DetectionValidationError
from stream_analyzer.core.models import BoundingBox, DetectedFace, FrameBatch, Pose


def raw_record():
    return {
        "InputInformation": {
            "KinesisVideo": {
                "StreamArn": "arn:mock:video/stream",
                "FragmentNumber": "91343852333181432392682062607743920146264440600",
                "ServerTimestamp": 1510552593.455,
                "ProducerTimestamp": 1510552593.324,
                "FrameOffsetInSeconds": 2.0,
            }
        },
        "StreamProcessorInformation": {"Status": "RUNNING"},
        "FaceSearchResponse": [
            {
                "DetectedFace": {
                    "BoundingBox": {"Height": 0.075, "Width": 0.05625, "Left": 0.428125, "Top": 0.40833333},
                    "Confidence": 99.97,
                    "Landmarks": [{"X": 0.4453, "Y": 0.4312, "Type": "eyeLeft"}],
                    "Pose": {"Pitch": 1.3, "Roll": -2.1, "Yaw": 7.5},
                    "Quality": {"Brightness": 40.0, "Sharpness": 40.0},
                },
                "MatchedFaces": [{"Similarity": 98.4, "Face": {"FaceId": "abc"}}],
            }
        ],
    }


class TestFrameBatchParsing(unittest.TestCase):
    def test_parses_timing_and_geometry(self):
        """Verify that timing metadata, bounding box and pose are read from the record."""
        batch = FrameBatch.from_dict(raw_record())

        self.assertEqual(batch.input_information.producer_timestamp, 1510552593.324)
        self.assertEqual(batch.input_information.frame_offset_in_seconds, 2.0)
        self.assertEqual(len(batch.detections), 1)

        face = batch.detections[0]
        self.assertEqual(face.bounding_box.width, 0.05625)
        self.assertEqual(face.pose.yaw, 7.5)
        self.assertIsNone(face.timestamp)
        self.assertIsNone(face.translational_velocity)

    def test_unmodelled_fields_survive_serialization(self):
        """Verify that fields we don't model are written back out unchanged."""
        batch = FrameBatch.from_dict(raw_record())
        data = batch.to_dict()

        self.assertEqual(data["StreamProcessorInformation"], {"Status": "RUNNING"})
        video = data["InputInformation"]["KinesisVideo"]
        self.assertEqual(video["StreamArn"], "arn:mock:video/stream")
        self.assertEqual(video["ServerTimestamp"], 1510552593.455)

        result = data["FaceSearchResponse"][0]
        self.assertEqual(result["MatchedFaces"][0]["Face"]["FaceId"], "abc")
        self.assertEqual(result["DetectedFace"]["Confidence"], 99.97)
        self.assertEqual(result["DetectedFace"]["Quality"]["Sharpness"], 40.0)

    def test_derived_fields_serialized_when_set(self):
        """Verify that derived fields use the upstream naming and unset velocities are omitted."""
        batch = FrameBatch.from_dict(raw_record())
        face = batch.detections[0]
        face.bounding_box.center = (0.45625, 0.44583333)
        face.timestamp = 1510552595.324
        face.record_index = 3

        data = batch.to_dict()["FaceSearchResponse"][0]["DetectedFace"]
        self.assertEqual(data["BoundingBox"]["Center"], [0.45625, 0.44583333])
        self.assertEqual(data["Timestamp"], 1510552595.324)
        self.assertEqual(data["RecordIndex"], 3)
        self.assertNotIn("TranslationalVelocity", data)
        self.assertNotIn("RotationalVelocity", data)

        face.translational_velocity = 0.0
        face.rotational_velocity = 1.5
        data = batch.to_dict()["FaceSearchResponse"][0]["DetectedFace"]
        self.assertEqual(data["TranslationalVelocity"], 0.0)
        self.assertEqual(data["RotationalVelocity"], 1.5)

    def test_round_trip_keeps_every_upstream_key(self):
        """Verify that keys outside the modelled ones come back out, at every level."""
        record = raw_record()
        record["InputInformation"]["Other"] = 1
        record["FaceSearchResponse"][0]["Extra"] = 2
        del record["FaceSearchResponse"][0]["MatchedFaces"]

        data = FrameBatch.from_dict(record).to_dict()

        self.assertEqual(data["InputInformation"]["Other"], 1)
        self.assertEqual(data["InputInformation"]["KinesisVideo"]["FragmentNumber"],
                         record["InputInformation"]["KinesisVideo"]["FragmentNumber"])
        result = data["FaceSearchResponse"][0]
        self.assertEqual(result["Extra"], 2)
        self.assertNotIn("MatchedFaces", result)
        self.assertEqual(data, record)

    def test_empty_matched_faces_kept_when_present(self):
        record = raw_record()
        record["FaceSearchResponse"][0]["MatchedFaces"] = []
        data = FrameBatch.from_dict(record).to_dict()
        self.assertEqual(data["FaceSearchResponse"][0]["MatchedFaces"], [])

    def test_record_without_faces_has_no_detections(self):
        record = raw_record()
        record["FaceSearchResponse"] = []
        batch = FrameBatch.from_dict(record)
        self.assertFalse(batch.has_faces)
        self.assertEqual(batch.detections, [])


class TestValidation(unittest.TestCase):
    def test_missing_pose_rejected(self):
        record = raw_record()
        del record["FaceSearchResponse"][0]["DetectedFace"]["Pose"]
        with self.assertRaises(DetectionValidationError) as ctx:
            FrameBatch.from_dict(record)
        self.assertIn("Pose", str(ctx.exception))

    def test_non_numeric_geometry_rejected(self):
        record = raw_record()
        record["FaceSearchResponse"][0]["DetectedFace"]["BoundingBox"]["Width"] = "wide"
        with self.assertRaises(DetectionValidationError) as ctx:
            FrameBatch.from_dict(record)
        self.assertIn("FaceSearchResponse[0].DetectedFace.BoundingBox.Width", str(ctx.exception))

    def test_boolean_is_not_numeric(self):
        record = raw_record()
        record["FaceSearchResponse"][0]["DetectedFace"]["Pose"]["Yaw"] = True
        with self.assertRaises(DetectionValidationError):
            FrameBatch.from_dict(record)

    def test_missing_producer_timestamp_rejected(self):
        record = raw_record()
        del record["InputInformation"]["KinesisVideo"]["ProducerTimestamp"]
        with self.assertRaises(DetectionValidationError):
            FrameBatch.from_dict(record)

    def test_validate_catches_values_set_after_parsing(self):
        face = DetectedFace(BoundingBox(0.1, 0.1, 0.2, 0.2), Pose(0.0, float("nan"), 0.0))
        with self.assertRaises(DetectionValidationError):
            face.validate()

    def test_zero_size_box_rejected(self):
        with self.assertRaises(DetectionValidationError):
            BoundingBox(0.1, 0.1, 0.0, 0.0).validate()

    def test_negative_size_box_accepted(self):
        """Verify that a mirrored box still has a usable face length and passes."""
        BoundingBox(0.1, 0.1, -0.2, 0.2).validate()
        BoundingBox(0.1, 0.1, 0.0, 0.3).validate()


if __name__ == "__main__":
    unittest.main()
