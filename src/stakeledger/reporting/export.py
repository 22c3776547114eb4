"""Export functionality for CSV and JSON."""

import json
from typing import Any, Dict, List

import pandas as pd

from ..simulation.runner import SimulationResult


def snapshots_frame(result: SimulationResult) -> pd.DataFrame:
    """One row per pool per block."""
    rows: List[Dict[str, Any]] = []
    for snapshot in result.snapshots:
        rows.extend(snapshot.to_rows())
    return pd.DataFrame(rows)


def events_frame(result: SimulationResult) -> pd.DataFrame:
    """One row per emitted record; columns are the union of record fields."""
    return pd.DataFrame(result.events)


def export_csv(result: SimulationResult, filepath: str):
    """Export per-block pool snapshots to CSV."""
    df = snapshots_frame(result)
    # integers above 2**63 would otherwise become floats or objects
    for column in df.columns:
        if df[column].dtype == object:
            df[column] = df[column].astype(str)
    df.to_csv(filepath, index=False)


def export_events_csv(result: SimulationResult, filepath: str):
    """Export emitted records to CSV."""
    events_frame(result).to_csv(filepath, index=False)


def export_json(result: SimulationResult, filepath: str):
    """Export simulation results to JSON."""
    export_data = {
        'config': result.config.to_dict(),
        'config_hash': result.config.compute_hash(),
        'snapshots': [row for snapshot in result.snapshots for row in snapshot.to_rows()],
        'events': result.events,
        'final_metrics': result.final_metrics,
        'rejected_actions': result.rejected_actions,
        'conservation_errors': result.conservation_errors,
    }

    with open(filepath, 'w') as f:
        json.dump(export_data, f, indent=2)
