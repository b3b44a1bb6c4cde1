"""Replaceable adapters for the services a call depends on."""

from intake.collaborators.base import DistanceLookup, DistanceResult, LeadSink, LoggingLeadSink

__all__ = ["DistanceLookup", "DistanceResult", "LeadSink", "LoggingLeadSink"]
