"""Vehicle intake workflow: drives -> year -> make -> ... -> condition.

The canonical definition lives in data/vehicle_intake.jsonl.
"""

from __future__ import annotations

from pathlib import Path

from intake.workflows.loader import load_workflow_jsonl
from intake.workflows.schema import IntakeWorkflowDef

JSONL_PATH = Path(__file__).resolve().parent / "data" / "vehicle_intake.jsonl"

WORKFLOW_DEF: IntakeWorkflowDef = load_workflow_jsonl(JSONL_PATH)
