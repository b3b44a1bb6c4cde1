"""Load JSONL workflow definitions into IntakeWorkflowDef objects."""

from __future__ import annotations

import json
from pathlib import Path

from intake.workflows.schema import IntakeStateDef, IntakeWorkflowDef


def load_workflow_jsonl(path: str | Path) -> IntakeWorkflowDef:
    """Load a single workflow from a JSONL file.

    The JSONL file contains exactly one JSON object (the workflow).
    States are nested inside the top-level ``states`` dict.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8").strip()

    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        return parse_workflow(json.loads(line))

    raise ValueError(f"No workflow found in {path}")


def parse_workflow(data: dict) -> IntakeWorkflowDef:
    """Parse a raw dict into an IntakeWorkflowDef."""
    states: dict[str, IntakeStateDef] = {}
    for state_id, state_data in data.get("states", {}).items():
        if isinstance(state_data, dict):
            state_data = dict(state_data)
            state_data.setdefault("id", state_id)
            states[state_id] = IntakeStateDef(**state_data)
        else:
            states[state_id] = state_data

    return IntakeWorkflowDef(**{**data, "states": states})
