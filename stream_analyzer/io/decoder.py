"""Raw stream record codec.

Face-search records arrive base64-encoded JSON, either bare or wrapped in a
stream-record envelope:

    {"kinesis": {"data": "<base64 JSON>"}, ...}

`decode_record` unwraps either form into the record mapping, and
`FrameBatchDecoder` turns a window of raw records into the FrameBatch
sequence the face track processor consumes.
"""

import base64
import binascii
import json
from typing import Any, Dict, Iterable, List

from ..core.errors import RecordDecodeError
from ..core.models import FrameBatch
from ..logger import get_logger

logger = get_logger("FrameBatchDecoder")


def encode_record(payload: Dict[str, Any], envelope: bool = True):
    """Encode a record mapping the way the upstream stream delivers it.

    Args:
        payload: Face-search record (InputInformation, FaceSearchResponse, ...).
        envelope: Wrap the base64 data in {"kinesis": {"data": ...}}.

    Returns:
        Envelope dict, or the bare base64 string.
    """
    data = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
    if envelope:
        return {"kinesis": {"data": data}}
    return data


def decode_record(raw) -> Dict[str, Any]:
    """Decode one raw record into its JSON mapping.

    Accepts an envelope dict, base64 str/bytes, or an already-decoded record.

    Raises:
        RecordDecodeError: If the data is not base64 JSON or not an object.
    """
    if isinstance(raw, dict):
        if "kinesis" not in raw:
            return raw
        kinesis = raw["kinesis"]
        if not isinstance(kinesis, dict) or "data" not in kinesis:
            raise RecordDecodeError("Envelope has no kinesis.data field")
        raw = kinesis["data"]

    if isinstance(raw, str):
        if not raw.isascii():
            raise RecordDecodeError("Record data is not base64")
        raw = raw.encode("ascii")
    if not isinstance(raw, (bytes, bytearray)):
        raise RecordDecodeError(f"Unsupported record type: {type(raw).__name__}")

    try:
        payload = base64.b64decode(raw, validate=True).decode("utf-8")
        data = json.loads(payload)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RecordDecodeError(f"Could not decode record: {e}") from e

    if not isinstance(data, dict):
        raise RecordDecodeError(f"Decoded record is a {type(data).__name__}, expected an object")
    return data


def has_face_detections(record: Dict[str, Any]) -> bool:
    results = record.get("FaceSearchResponse")
    return isinstance(results, list) and len(results) > 0


class FrameBatchDecoder:
    """
    Decodes a window of raw stream records into FrameBatch objects.
    Records without face detections are dropped before parsing, so their
    metadata is never validated.
    """
    def decode(self, raw_records: Iterable[Any]) -> List[FrameBatch]:
        records = [decode_record(raw) for raw in raw_records]
        face_records = [record for record in records if has_face_detections(record)]
        logger.debug("RecordsDecoded", {"received": len(records), "with_faces": len(face_records)})
        return [FrameBatch.from_dict(record) for record in face_records]
