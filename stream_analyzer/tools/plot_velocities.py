import argparse
import os
from collections import defaultdict

from .velocity_report import iter_faces

def load_series(lines):
    """
    Per-slot velocity series from processed output lines.
    Faces without velocities are skipped.

    Returns:
        dict: slot -> (timestamps, translational, rotational)
    """
    series = defaultdict(lambda: ([], [], []))
    for slot, face in iter_faces(lines):
        if "Timestamp" not in face:
            continue
        if "TranslationalVelocity" not in face or "RotationalVelocity" not in face:
            continue
        times, trans, rot = series[slot]
        times.append(face["Timestamp"])
        trans.append(face["TranslationalVelocity"])
        rot.append(face["RotationalVelocity"])
    return dict(series)

def plot_velocities(filename="processed.jsonl", output_filename="face_motion.png"):
    if not os.path.exists(filename):
        print(f"Error: {filename} not found.")
        return None

    with open(filename, 'r') as f:
        series = load_series(f.readlines())

    if not series:
        print("No valid data found.")
        return None

    import matplotlib.pyplot as plt

    # Normalize time to the earliest sample across all slots
    start_time = min(times[0] for times, _, _ in series.values())

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 8), sharex=True)

    ax1.set_title("Translational Velocity per Slot")
    ax2.set_title("Rotational Velocity per Slot")
    for slot, (times, trans, rot) in sorted(series.items()):
        rel = [t - start_time for t in times]
        ax1.plot(rel, trans, '-o', markersize=2, label=f"Slot {slot}")
        ax2.plot(rel, rot, '-o', markersize=2, label=f"Slot {slot}")

    ax1.set_ylabel("Face lengths / s")
    ax1.legend()
    ax1.grid(True)

    ax2.set_ylabel("Degrees / s")
    ax2.set_xlabel("Time (s)")
    ax2.axhline(0, color='black', linewidth=1)
    ax2.legend()
    ax2.grid(True)

    plt.tight_layout()
    plt.savefig(output_filename)
    plt.close(fig)
    print(f"Plot saved to {output_filename}")
    return output_filename

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Plot face velocities from processed stream output.")
    parser.add_argument("outputfile", nargs="?", default="processed.jsonl")
    parser.add_argument("--png", default="face_motion.png")
    args = parser.parse_args()
    plot_velocities(args.outputfile, args.png)
