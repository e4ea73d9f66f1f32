"""
Scheduling horizons used by cycles and programs.

Two different defaults exist on purpose: an open-ended cycle is considered
"in range" for a year, but session planning only fills twelve weeks.
"""

from __future__ import annotations

# Effective end of an open-ended cycle for range checks (never persisted).
ACTIVATION_WINDOW_DAYS: int = 365

# Default planning horizon when generating sessions for an open-ended cycle.
PLANNING_HORIZON_DAYS: int = 84

# How far ahead the program looks for its next expected session.
LOOKAHEAD_DAYS: int = 365
