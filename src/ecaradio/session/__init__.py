"""
Session Module: tracks, takes and live monitor/record setups.
"""

__all__ = ["iospec", "model", "store", "transport"]
