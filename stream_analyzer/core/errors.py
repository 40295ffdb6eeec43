class StreamAnalyzerError(Exception):
    """Base class for all stream analyzer failures."""


class RecordDecodeError(StreamAnalyzerError):
    """A raw stream record could not be decoded into a detection record."""


class DetectionValidationError(StreamAnalyzerError):
    """Bounding box, pose or timing metadata is missing or not numeric."""


class InsufficientDataError(StreamAnalyzerError):
    """Fewer than two batches with face detections were available."""
    def __init__(self, count, required=2):
        super().__init__(f"Not enough records to process ({count} < {required}).")
        self.count = count
        self.required = required


class PublishError(StreamAnalyzerError):
    """The downstream stream rejected some or all records of a batch put."""
    def __init__(self, message, failed_record_count=0, total_record_count=0):
        super().__init__(message)
        self.failed_record_count = failed_record_count
        self.total_record_count = total_record_count
