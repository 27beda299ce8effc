from __future__ import annotations

from .hasher import FINGERPRINT_WINDOW, Fingerprinter

__all__ = ["FINGERPRINT_WINDOW", "Fingerprinter"]
