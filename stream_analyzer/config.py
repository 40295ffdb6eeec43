# Configuration loading (stream addresses, windowing, first-sighting policy)
import json
import os

DEFAULTS = {
    "raw_stream_address": "tcp://localhost:5570",
    "raw_stream_topic": "faces",
    "processed_stream_address": "tcp://*:5571",
    "processed_stream_name": "processed-faces",
    "partition_key": "shard-0",
    "window_size": 100,
    "window_seconds": 1.0,
    "zero_velocity_on_first_sighting": False,
}

# Environment variables win over the settings file
ENV_OVERRIDES = {
    "raw_stream_address": ("RAW_STREAM_ADDRESS", str),
    "raw_stream_topic": ("RAW_STREAM_TOPIC", str),
    "processed_stream_address": ("PROCESSED_STREAM_ADDRESS", str),
    "processed_stream_name": ("PROCESSED_STREAM_NAME", str),
    "partition_key": ("PARTITION_KEY", str),
    "window_size": ("WINDOW_SIZE", int),
    "window_seconds": ("WINDOW_SECONDS", float),
    "zero_velocity_on_first_sighting": ("ZERO_VELOCITY_ON_FIRST_SIGHTING", "bool"),
}

def _parse_bool(value):
    return str(value).strip().lower() in ("1", "true", "yes", "on")

def load_settings(file_path="stream_analyzer.json"):
    """Load analyzer settings from a JSON file."""
    if not os.path.exists(file_path):
        return {}
    try:
        with open(file_path, "r") as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            print(f"Ignoring settings in {file_path}: expected a JSON object.")
            return {}
        print("Settings loaded successfully.")
        return settings
    except (IOError, json.JSONDecodeError) as e:
        print(f"Error loading settings from {file_path}: {e}")
        return {}

def apply_env_overrides(settings, environ=None):
    """Return a copy of settings with any matching environment variables applied."""
    environ = os.environ if environ is None else environ
    merged = dict(settings)
    for key, (env_name, kind) in ENV_OVERRIDES.items():
        if env_name not in environ:
            continue
        raw = environ[env_name]
        try:
            merged[key] = _parse_bool(raw) if kind == "bool" else kind(raw)
        except ValueError:
            print(f"Ignoring {env_name}={raw!r}: not a valid {kind.__name__}.")
    return merged

class Config:
    """A class to hold the application configuration."""
    def __init__(self, settings_path="stream_analyzer.json", environ=None):
        settings = dict(DEFAULTS)
        settings.update(load_settings(settings_path))
        settings = apply_env_overrides(settings, environ)

        self.raw_stream_address = settings["raw_stream_address"]
        self.raw_stream_topic = settings["raw_stream_topic"]
        self.processed_stream_address = settings["processed_stream_address"]
        self.processed_stream_name = settings["processed_stream_name"]
        self.partition_key = settings["partition_key"]
        self.window_size = max(1, int(settings["window_size"]))
        self.window_seconds = max(0.0, float(settings["window_seconds"]))
        flag = settings["zero_velocity_on_first_sighting"]
        self.zero_velocity_on_first_sighting = flag if isinstance(flag, bool) else _parse_bool(flag)

    def as_dict(self):
        return {key: getattr(self, key) for key in DEFAULTS}

def load_config(settings_path="stream_analyzer.json", environ=None):
    """Load all configurations."""
    return Config(settings_path, environ)
