"""Event log for the analyzer.

Every component logs a CamelCase event name with a dict payload:

    logger.info("FaceRecordsProcessed", {"count": 4, "start": 0.0, "end": 3.0})

The file handler writes one JSON object per event so a replay or a live run
can be audited afterwards. The console shows the same events, one per line.
"""
import logging
import json
import datetime
import sys
import os

LOG_DIR = "logs"

# Chatty at INFO when the plot tool or pyzmq's event loop helpers are loaded
QUIET_LOGGERS = ("matplotlib", "PIL", "asyncio")


class JSONFormatter(logging.Formatter):
    """One JSON line per event: timestamp, level, component, event, data."""
    def format(self, record):
        entry = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "event": record.msg,
            "data": record.args if isinstance(record.args, dict) else {}
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # numpy floats and the like fall back to str
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """[TIME] [LEVEL] [Component] Event {payload}"""
    def __init__(self):
        super().__init__('[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s')

    def formatMessage(self, record):
        line = super().formatMessage(record)
        if isinstance(record.args, dict) and record.args:
            line = f"{line} {json.dumps(record.args, default=str)}"
        return line


def default_log_path(session_id=None, now=None):
    """logs/analyzer_<session>.jsonl, or a timestamped name without a session."""
    if session_id:
        filename = f"analyzer_{session_id}.jsonl"
    else:
        now = now or datetime.datetime.now()
        filename = f"analyzer_{now.strftime('%Y-%m-%d_%H-%M-%S')}.jsonl"
    return os.path.join(LOG_DIR, filename)


def setup_logging(session_id=None, log_file=None, verbose=False):
    """
    Route analyzer events to a JSONL file and the console.

    Args:
        session_id (str): Names the log file, e.g. the partition key of the shard
                          this process serves.
        log_file (str): Explicit path; wins over session_id.
        verbose (bool): DEBUG events (ZeroTimeDelta, RecordsDecoded) in the file,
                        everything on the console.

    Returns:
        str: Path of the JSONL log file.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Replays in the same process re-initialize; drop the old file handle
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers = []

    if log_file is None:
        log_file = default_log_path(session_id)
    if os.path.dirname(log_file):
        os.makedirs(os.path.dirname(log_file), exist_ok=True)

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(JSONFormatter())
    file_handler.setLevel(level)
    root_logger.addHandler(file_handler)

    # Quiet unless something failed: a WindowFailed or ReplayFailed shows up here
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ConsoleFormatter())
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)

    logging.info("LoggingInitialized", {"log_file": log_file, "verbose": verbose})
    return log_file


def get_logger(name):
    """Logger named after the component, e.g. "FaceTrackProcessor"."""
    return logging.getLogger(name)
