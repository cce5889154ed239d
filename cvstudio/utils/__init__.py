"""
Shared utilities for CV Studio.

Common functionality used across contexts:
- Logging setup
- Timestamps
- Text and date normalization
- PDF inspection
"""

from cvstudio.utils.timestamp import now, now_exact, today

__all__ = ["now", "now_exact", "today"]
