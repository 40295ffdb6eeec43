# Main application entry point
import argparse
import sys
import time

from .config import load_config
from .core.errors import StreamAnalyzerError
from .core.tracking.face_tracker import FaceTrackProcessor
from .handler import RecordHandler
from .io.publisher import FileResultPublisher, ZmqResultPublisher
from .logger import setup_logging, get_logger
from .perception.stream_receiver import StreamReceiver, parse_payload


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Derive face motion metrics from a face-search record stream.")
    parser.add_argument("--config", type=str, default="stream_analyzer.json",
                        help="Path to the JSON settings file.")
    parser.add_argument("--replay", type=str, default=None,
                        help="Process raw records from a file (one per line) instead of the live stream.")
    parser.add_argument("--output", type=str, default=None,
                        help="Write processed records to this JSONL file instead of the ZMQ stream.")
    parser.add_argument("--session-id", type=str, default=None,
                        help="ID used in the log filename.")
    parser.add_argument("--log-file", type=str, default=None,
                        help="Explicit log file path.")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable verbose debug output.")
    return parser.parse_args(argv)


def read_raw_records(path):
    """Raw records from a replay file: JSON envelopes or bare base64, one per line."""
    records = []
    with open(path, "rb") as f:
        for line in f:
            line = line.strip()
            if line:
                records.append(parse_payload(line))
    return records


def build_publisher(config, output=None):
    if output:
        return FileResultPublisher(output, config.processed_stream_name, config.partition_key)
    return ZmqResultPublisher(
        address=config.processed_stream_address,
        stream_name=config.processed_stream_name,
        partition_key=config.partition_key,
    )


def run_replay(config, path, output=None):
    logger = get_logger("Replay")
    publisher = build_publisher(config, output)
    processor = FaceTrackProcessor(config.zero_velocity_on_first_sighting)
    try:
        records = read_raw_records(path)
        result = RecordHandler(publisher, processor).handle(records)
        logger.info("ReplayFinished", {"path": path, "status": result.status, "published": result.published})
        print(result.message)
        return 0
    except (OSError, StreamAnalyzerError) as e:
        logger.error("ReplayFailed", {"path": path, "error": str(e)})
        print(f"Replay failed: {e}")
        return 1
    finally:
        publisher.close()


def run_stream(config, output=None):
    publisher = build_publisher(config, output)
    processor = FaceTrackProcessor(config.zero_velocity_on_first_sighting)
    handler = RecordHandler(publisher, processor)
    receiver = StreamReceiver(
        stream_uri=config.raw_stream_address,
        topic=config.raw_stream_topic,
        window_size=config.window_size,
        window_seconds=config.window_seconds,
    )

    print(" --- Stream Analyzer Ready ---")
    print(f" Listening on {config.raw_stream_address}, publishing to {config.processed_stream_name}")
    receiver.start_receiving(handler)
    try:
        while receiver.is_alive():
            time.sleep(0.5)
    except KeyboardInterrupt:
        print("\nCaught KeyboardInterrupt. Shutting down...")
    finally:
        receiver.stop()
        publisher.close()
    return 0


def main(argv=None):
    """Main function to run the stream analyzer."""
    args = parse_args(argv)
    setup_logging(session_id=args.session_id, log_file=args.log_file, verbose=args.verbose)
    config = load_config(args.config)
    get_logger("Main").info("ConfigLoaded", config.as_dict())

    if args.replay:
        return run_replay(config, args.replay, args.output)
    return run_stream(config, args.output)


if __name__ == "__main__":
    sys.exit(main())
