"""Top-level package for ringcheck.

Differential oracle for ring-based order settlement: the transfers predicted by
an off-chain simulation are compared with the Transfer events emitted by the
ledger that actually executed the same batch.
"""

from __future__ import annotations

__version__ = "0.3.0"

__all__ = [
    "__version__",
]
