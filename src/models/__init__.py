"""Pydantic models and dataframe schema validators.

These are contracts to keep the pipeline deterministic:
- Each loader validates its inputs/outputs at boundaries.
- Extraction logic remains in `src/` pure functions; scripts orchestrate I/O.
"""

from __future__ import annotations

from src.models.schemas import (
    LINKS,
    NODES,
    OUTPUT_TRIPS,
    PLAN_ELEMENTS,
    TableSchema,
)
from src.models.validate import validate_df

__all__ = [
    "TableSchema",
    "validate_df",
    "NODES",
    "LINKS",
    "PLAN_ELEMENTS",
    "OUTPUT_TRIPS",
]
