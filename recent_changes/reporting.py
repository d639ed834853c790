"""
Reporting and export utilities.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Sequence

import pandas as pd

from .models import ChangeMode, ChangeRecord


logger = logging.getLogger(__name__)

REPORT_TITLE = "=== Recently Modified Metadata ==="
NO_CHANGES_MESSAGE = "No metadata changes found in the specified period."

_RECORD_COLUMNS = [
    "type",
    "name",
    "modification_age",
    "creation_age",
    "last_modified_date",
    "created_date",
    "last_modified_by_name",
    "created_by_name",
]


def table_columns(mode: ChangeMode) -> Dict[str, str]:
    """Map record fields to the table headers shown for a mode."""
    if mode is ChangeMode.CREATED:
        return {
            "name": "Name",
            "creation_age": "Cr. Age",
            "created_date": "Cr. Date",
            "created_by_name": "Cr. By",
        }
    return {
        "name": "Name",
        "modification_age": "Mod. Age",
        "last_modified_date": "Mod. Date",
        "last_modified_by_name": "Mod. By",
    }


def records_to_frame(records: Sequence[ChangeRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        [[getattr(record, col) for col in _RECORD_COLUMNS] for record in records],
        columns=_RECORD_COLUMNS,
    )


def group_changes(
    records: Sequence[ChangeRecord], mode: ChangeMode
) -> Dict[str, pd.DataFrame]:
    """Group records by type, each group sorted by its effective age.

    Groups are keyed in alphabetical type order. Records with the same age
    keep their discovery order.
    """
    if not records:
        return {}

    df = records_to_frame(records)
    columns = table_columns(mode)

    grouped = {}
    for type_name, group in df.groupby("type", sort=True):
        ordered = group.sort_values(by=mode.age_field, kind="stable")
        grouped[type_name] = (
            ordered[list(columns)].rename(columns=columns).reset_index(drop=True)
        )
    return grouped


def render_changes(records: Sequence[ChangeRecord], mode: ChangeMode) -> str:
    """Render the grouped tables, or the no-changes notice."""
    if not records:
        return "\n" + NO_CHANGES_MESSAGE

    lines = ["\n" + REPORT_TITLE]
    for type_name, table in group_changes(records, mode).items():
        lines.append(f"\n--- {type_name} ---")
        lines.append(table.to_string(index=False))
    return "\n".join(lines)


def records_to_json(records: Sequence[ChangeRecord]) -> List[Dict[str, object]]:
    return [record.to_dict() for record in records]


def save_results_json(records: Sequence[ChangeRecord], output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    results_file = output_dir / "recent_changes.json"
    with open(results_file, 'w', encoding='utf-8') as f:
        json.dump(records_to_json(records), f, indent=2)
    logger.debug("Saved %s records to %s", len(records), results_file)
    return results_file
