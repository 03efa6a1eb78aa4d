"""Validation utilities for pipeline dataframe contracts."""

from __future__ import annotations

import numpy as np
import pandas as pd

from src.models.schemas import TableSchema


def validate_df(
    df: pd.DataFrame,
    schema: TableSchema,
    *,
    coerce_dtypes: bool = True,
    allow_extra_columns: bool = True,
) -> pd.DataFrame:
    """Validate a dataframe against a schema. Returns a (possibly coerced) copy.

    Optional columns absent from `df` are added as all-NA columns of their
    declared dtype, so downstream code can rely on every allowed column.
    """
    missing = [c for c in schema.required_columns if c not in df.columns]
    if missing:
        raise ValueError(f"{schema.name}: missing required columns: {missing}")

    if not allow_extra_columns:
        extra = [c for c in df.columns if c not in schema.allowed_columns()]
        if extra:
            raise ValueError(f"{schema.name}: unexpected columns: {extra}")

    out = df.copy()
    for col in schema.optional_columns:
        if col not in out.columns:
            out[col] = pd.Series(pd.NA, index=out.index, dtype=schema.dtypes.get(col, "object"))

    if coerce_dtypes and schema.dtypes:
        for col, dtype in schema.dtypes.items():
            if col not in out.columns:
                continue
            try:
                out[col] = out[col].astype(dtype)
            except Exception as exc:  # noqa: BLE001 - surface as actionable schema error
                raise TypeError(
                    f"{schema.name}: failed to coerce column '{col}' to dtype '{dtype}': {exc}"
                ) from exc

    if schema.non_null:
        bad = [c for c in schema.non_null if c in out.columns and out[c].isna().any()]
        if bad:
            counts = {c: int(out[c].isna().sum()) for c in bad}
            raise ValueError(f"{schema.name}: non-null columns contain NA values: {counts}")

    if schema.finite:
        bad_finite: dict[str, int] = {}
        for c in schema.finite:
            if c not in out.columns:
                continue
            vals = out[c].dropna().to_numpy(dtype=float)
            n_bad = int((~np.isfinite(vals)).sum())
            if n_bad:
                bad_finite[c] = n_bad
        if bad_finite:
            raise ValueError(f"{schema.name}: columns contain non-finite values: {bad_finite}")

    return out
