"""Scoring package — threshold classification and run summary."""

from .classifier import Classifier, ThresholdRule, Tier, worst_tier
from .engine import compute_summary, summarize_host
from .models import HostSummary, RunSummary

__all__ = [
    "Classifier",
    "ThresholdRule",
    "Tier",
    "worst_tier",
    "compute_summary",
    "summarize_host",
    "HostSummary",
    "RunSummary",
]
