from __future__ import annotations

from .database import Database
from .jobs import JobStore
from .state import StateStore

__all__ = ["Database", "JobStore", "StateStore"]
