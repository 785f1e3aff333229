from __future__ import annotations

"""
tokenledger.version: semantic version string.

If TOKENLEDGER_VERSION is set in the environment, that wins; otherwise
BASE_VERSION is reported as-is.
"""

import os

# Bump this on intentional releases.
BASE_VERSION = "0.1.0"

__version__: str = os.getenv("TOKENLEDGER_VERSION") or BASE_VERSION

__all__ = ["BASE_VERSION", "__version__"]
