"""Schema definitions for pipeline dataframe contracts.

This module contains only:
- `TableSchema` (schema metadata container)
- concrete table schemas (`NODES`, `LINKS`, `PLAN_ELEMENTS`, `OUTPUT_TRIPS`)
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, Field


class TableSchema(BaseModel):
    """A simple schema for a pandas DataFrame (column-level contract)."""

    name: str
    required_columns: tuple[str, ...] = Field(default_factory=tuple)
    optional_columns: tuple[str, ...] = Field(default_factory=tuple)
    # pandas dtype strings, e.g. "string", "Float64", "Int64"
    dtypes: Mapping[str, str] = Field(default_factory=dict)
    non_null: tuple[str, ...] = Field(default_factory=tuple)
    # numeric columns that must hold finite values where present
    finite: tuple[str, ...] = Field(default_factory=tuple)

    def allowed_columns(self) -> set[str]:
        return set(self.required_columns) | set(self.optional_columns)


NODES = TableSchema(
    name="nodes",
    required_columns=("node_id", "x", "y"),
    dtypes={
        "node_id": "string",
        "x": "Float64",
        "y": "Float64",
    },
    non_null=("node_id", "x", "y"),
    finite=("x", "y"),
)

LINKS = TableSchema(
    name="links",
    required_columns=("link_id", "from_node", "to_node", "length_m", "freespeed_mps"),
    optional_columns=("capacity", "modes"),
    dtypes={
        "link_id": "string",
        "from_node": "string",
        "to_node": "string",
        "length_m": "Float64",
        "freespeed_mps": "Float64",
        "capacity": "Float64",
        "modes": "string",
    },
    # length/speed may be corrupt; routing and time accumulation deal with it per trip
    non_null=("link_id", "from_node", "to_node"),
)

PLAN_ELEMENTS = TableSchema(
    name="plan_elements",
    required_columns=("person_id", "element_index", "element_type"),
    optional_columns=("activity_type", "link_id", "x", "y", "end_time", "mode"),
    dtypes={
        "person_id": "string",
        "element_index": "Int64",
        "element_type": "string",
        "activity_type": "string",
        "link_id": "string",
        "x": "Float64",
        "y": "Float64",
        "end_time": "Float64",
        "mode": "string",
    },
    non_null=("person_id", "element_index", "element_type"),
)

OUTPUT_TRIPS = TableSchema(
    name="output_trips",
    required_columns=(
        "person_id",
        "start_activity_type",
        "start_x",
        "start_y",
        "start_end_time",
        "leg_mode",
        "end_activity_type",
        "end_x",
        "end_y",
    ),
    optional_columns=("source_person_id", "case"),
    dtypes={
        "person_id": "string",
        "source_person_id": "string",
        "case": "string",
        "start_activity_type": "string",
        "start_x": "Float64",
        "start_y": "Float64",
        "start_end_time": "Float64",
        "leg_mode": "string",
        "end_activity_type": "string",
        "end_x": "Float64",
        "end_y": "Float64",
    },
    non_null=("person_id", "start_x", "start_y", "start_end_time", "end_x", "end_y"),
    finite=("start_x", "start_y", "start_end_time", "end_x", "end_y"),
)
