"""
Render Module: crossfaded radio mixes rendered offline by ecasound.

- Lap-overlap timeline, half a crossfade either side of each boundary
- Clips placed with .ewf descriptors, gain driven by -klg envelopes
- Optional static bed under every fade-out
"""

__all__ = ["envelope", "ewf", "sequencer", "commands", "render"]
