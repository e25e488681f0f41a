"""
Analysis Module: measure source lengths, split recordings at markers,
and find split markers at silent gaps.
"""

__all__ = ["measure", "markers", "silence"]
