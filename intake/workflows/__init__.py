"""Data-driven workflow definitions for the intake conversation."""

from .schema import IntakeStateDef, IntakeWorkflowDef, Step

__all__ = ["IntakeStateDef", "IntakeWorkflowDef", "Step"]
