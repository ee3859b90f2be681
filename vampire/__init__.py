"""
Vampire Number Scanner
======================
Parallel scanner for vampire numbers: numbers with an even digit count whose
digits rearrange into two half-length fangs that multiply back to the number.

Architecture:
    - Detector: Decides whether one number is a vampire number and finds its fangs
    - Chunker: Splits the scan range into fixed-size chunks
    - Worker: Runs the detector over one chunk
    - Engine: Fans chunks out to a bounded pool and merges results in range order
    - CLI: Prints one line per fang pair

Version: 1.0.0
"""

__version__ = "1.0.0"

from .detector import detect  # noqa: E402
from .engine import InvalidRangeError, ScanConfig, ScanEngine, ScanError, scan  # noqa: E402

__all__ = [
    "InvalidRangeError",
    "ScanConfig",
    "ScanEngine",
    "ScanError",
    "detect",
    "scan",
]
