"""
Engine layer: ecasound control interface client, bounded status polling,
JACK routing and the shared application context.
"""

__all__ = ["eci", "context", "routing"]
