"""Reconciliation of scanned files against the persisted inventory."""

from .classifier import classify, summarize
from .models import ChangeOperation, ChangeRecord

__all__ = ["ChangeOperation", "ChangeRecord", "classify", "summarize"]
