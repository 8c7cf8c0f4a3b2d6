"""
Structural operations over the Registry and Tracker.

Each operation reads one snapshot, computes a plan without I/O, then
applies it in ordered batches.
"""

from .add import AddResult, add_company
from .base import ApplyRunner, CompanyPayload, OperationContext
from .duplicates import DuplicateCandidate, DuplicateGroup, scan_duplicates
from .gaps import GapRepairResult, GapScan, plan_gap_repair, repair_gaps, scan_gaps
from .insert import InsertResult, insert_company, plan_insert_company
from .merge import MergeResult, MergeStrategy, merge_companies, plan_merge, resolve_final_id
from .reconcile import ReconcileResult, plan_reconcile, reconcile

__all__ = [
    "AddResult",
    "ApplyRunner",
    "CompanyPayload",
    "DuplicateCandidate",
    "DuplicateGroup",
    "GapRepairResult",
    "GapScan",
    "InsertResult",
    "MergeResult",
    "MergeStrategy",
    "OperationContext",
    "ReconcileResult",
    "add_company",
    "insert_company",
    "merge_companies",
    "plan_gap_repair",
    "plan_insert_company",
    "plan_merge",
    "plan_reconcile",
    "reconcile",
    "repair_gaps",
    "resolve_final_id",
    "scan_duplicates",
    "scan_gaps",
]
