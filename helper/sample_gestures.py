import json

import numpy as np


def generate_human_sample(rng, n_positions=6, duration_ms=3000.0):
    """
    A plausible hand gesture: a smooth-ish 3-D walk with jittered frame times.

    Args:
        rng: numpy Generator
        n_positions: Number of positions (3-10)
        duration_ms: Approximate total duration

    Returns:
        Gesture dict in the {"positions", "timing"} wire form
    """
    start = rng.uniform(0.3, 0.7, size=3)
    steps = rng.normal(0.0, 0.05, size=(n_positions - 1, 3))
    points = np.clip(np.vstack([start, start + np.cumsum(steps, axis=0)]), 0.0, 1.0)

    base_interval = duration_ms / (n_positions - 1)
    intervals = base_interval * rng.uniform(0.8, 1.2, size=n_positions - 1)
    timing = np.concatenate([[0.0], np.cumsum(intervals)])

    return {
        "positions": [{"x": float(x), "y": float(y), "z": float(z)} for x, y, z in points],
        "timing": [round(float(t), 1) for t in timing],
    }


def generate_scripted_sample(n_positions=6, interval_ms=500.0):
    """A replay-bot gesture: a straight line at a perfectly regular frame rate."""
    return {
        "positions": [
            {"x": 0.2 + 0.1 * i, "y": 0.5, "z": 0.5} for i in range(n_positions)
        ],
        "timing": [i * interval_ms for i in range(n_positions)],
    }


def generate_sample_library(seed=42, count=20):
    rng = np.random.default_rng(seed)
    library = []
    for _ in range(count):
        n_positions = int(rng.integers(3, 11))
        library.append(generate_human_sample(rng, n_positions=n_positions))
    return library


if __name__ == "__main__":
    library = generate_sample_library()
    with open("sample_library.json", "w") as f:
        json.dump(library, f)

    print(f"Generated {len(library)} sample gestures")
