"""Daily multi-branch retail briefing sections."""
from __future__ import annotations

__version__ = "0.1.0"
