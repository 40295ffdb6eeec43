#!/usr/bin/env python3
import json
import argparse
import statistics
from collections import defaultdict

def parse_args():
    parser = argparse.ArgumentParser(description="Summarize face motion metrics from processed stream output.")
    parser.add_argument("outputfile", help="Path to the processed JSONL output (one packaged record per line)")
    parser.add_argument("--gap-threshold", type=float, default=1.0, help="Timestamp gap in seconds to flag between consecutive records (default 1.0s)")
    return parser.parse_args()

def iter_faces(lines):
    """Yields (slot, DetectedFace dict) for every face in every packaged record."""
    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
            record = json.loads(entry["Data"]) if "Data" in entry else entry
        except (json.JSONDecodeError, TypeError, KeyError):
            continue
        for slot, result in enumerate(record.get("FaceSearchResponse") or []):
            face = result.get("DetectedFace")
            if isinstance(face, dict):
                yield slot, face

def summarize_records(lines, gap_threshold=1.0):
    """
    Per-slot statistics over processed records.

    Returns:
        dict: slot -> {"samples", "missing_velocity", "translational_mean",
              "translational_max", "rotational_mean", "rotational_max",
              "start", "end", "gaps"}
    """
    slots = defaultdict(lambda: {"timestamps": [], "translational": [], "rotational": [], "missing": 0})

    for slot, face in iter_faces(lines):
        data = slots[slot]
        if "Timestamp" in face:
            data["timestamps"].append(face["Timestamp"])
        if "TranslationalVelocity" in face and "RotationalVelocity" in face:
            data["translational"].append(face["TranslationalVelocity"])
            data["rotational"].append(face["RotationalVelocity"])
        else:
            data["missing"] += 1

    summary = {}
    for slot, data in sorted(slots.items()):
        timestamps = data["timestamps"]
        gaps = [b - a for a, b in zip(timestamps, timestamps[1:]) if (b - a) > gap_threshold]
        summary[slot] = {
            "samples": len(data["translational"]) + data["missing"],
            "missing_velocity": data["missing"],
            "translational_mean": statistics.mean(data["translational"]) if data["translational"] else None,
            "translational_max": max(data["translational"]) if data["translational"] else None,
            "rotational_mean": statistics.mean(data["rotational"]) if data["rotational"] else None,
            "rotational_max": max(data["rotational"]) if data["rotational"] else None,
            "start": timestamps[0] if timestamps else None,
            "end": timestamps[-1] if timestamps else None,
            "gaps": len(gaps),
        }
    return summary

def _fmt(value):
    return "n/a" if value is None else f"{value:.3f}"

def analyze_output(filepath, gap_threshold=1.0):
    print(f"--- Face Motion Report: {filepath} ---")

    try:
        with open(filepath, 'r') as f:
            lines = f.readlines()
    except OSError as e:
        print(f"Error opening file: {e}")
        return None

    if not lines:
        print("Output file is empty.")
        return None

    summary = summarize_records(lines, gap_threshold)
    if not summary:
        print("No detected faces found.")
        return summary

    for slot, stats in summary.items():
        print(f"\n[Slot {slot}]")
        print(f"  Samples:          {stats['samples']} ({stats['missing_velocity']} without velocity)")
        print(f"  Time Span:        {_fmt(stats['start'])} -> {_fmt(stats['end'])}")
        print(f"  Translational:    mean {_fmt(stats['translational_mean'])}, max {_fmt(stats['translational_max'])} face-lengths/s")
        print(f"  Rotational:       mean {_fmt(stats['rotational_mean'])}, max {_fmt(stats['rotational_max'])} deg/s")
        if stats["gaps"]:
            print(f"  Timestamp Gaps (> {gap_threshold}s): {stats['gaps']}")

    return summary

if __name__ == "__main__":
    args = parse_args()
    analyze_output(args.outputfile, args.gap_threshold)
