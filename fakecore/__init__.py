"""In-memory Bitcoin chain, mempool and wallet state for tests."""

__version__ = "0.1.0"

__all__ = ["address", "primitives", "state"]