"""
Silence-based marker detection.

Finds the gaps in a long recording (e.g. a radio show captured in one take)
and returns a marker list MarkerSplitter can consume directly: 0.0 first,
then the midpoint of every sufficiently long silent stretch.
"""

import logging
from typing import List, Tuple

import aubio
import numpy as np

logger = logging.getLogger(__name__)


def _hop_levels_db(audio_path: str, hop_size: int) -> Tuple[np.ndarray, int]:
    """Per-hop RMS level in dBFS, plus the file's sample rate."""
    source = aubio.source(audio_path, hop_size=hop_size)
    sample_rate = source.samplerate

    levels = []
    while True:
        samples, num_read = source()
        if num_read == 0:
            break
        rms = float(np.sqrt(np.mean(samples[:num_read] ** 2)))
        levels.append(rms)
        if num_read < hop_size:
            break

    levels_array = np.maximum(np.array(levels, dtype=np.float64), 1e-10)
    return 20.0 * np.log10(levels_array), sample_rate


def _silent_runs(silent: np.ndarray) -> List[Tuple[int, int]]:
    """(first, last+1) hop indices of each run of True values."""
    if silent.size == 0:
        return []
    padded = np.concatenate(([False], silent, [False]))
    edges = np.flatnonzero(np.diff(padded.astype(np.int8)))
    return list(zip(edges[0::2].tolist(), edges[1::2].tolist()))


def detect_markers(audio_path: str, config: dict) -> List[float]:
    """
    Detect split markers at silent gaps.

    Leading and trailing silence never produces a marker.

    Args:
        audio_path: Recording to scan
        config: Analysis config dict (hop_size, silence_threshold_db, min_silence_seconds)

    Returns:
        Marker times in seconds, starting with 0.0
    """
    hop_size = int(config.get("hop_size", 1024))
    threshold_db = float(config.get("silence_threshold_db", -50.0))
    min_silence = float(config.get("min_silence_seconds", 1.5))

    logger.debug(f"Scanning {audio_path} for silence below {threshold_db} dBFS")
    levels_db, sample_rate = _hop_levels_db(audio_path, hop_size)
    seconds_per_hop = hop_size / float(sample_rate)
    min_hops = max(1, int(round(min_silence / seconds_per_hop)))

    markers = [0.0]
    total_hops = levels_db.size
    for first, stop in _silent_runs(levels_db < threshold_db):
        if first == 0 or stop == total_hops:
            continue
        if stop - first < min_hops:
            continue
        markers.append(round((first + stop) / 2.0 * seconds_per_hop, 3))

    logger.info(f"Found {len(markers) - 1} silent gaps in {audio_path}")
    return markers
