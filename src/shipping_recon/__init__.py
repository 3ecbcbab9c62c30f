"""
EOM ↔ GIV shipping-options reconciliation library.

This package provides modular building blocks for:
- Canonicalizing vendor shipping codes into one TYPE-SUBTYPE-METHOD taxonomy
- Filtering and projecting each service's serviceable options
- Comparing the normalized option lists and building per-row reports
- Running rows in throttled concurrent groups and writing the report CSV

Public API:
- canonical.canonicalize
- options.project_eom, options.project_giv, options.NormalizedOption
- compare.compare, compare.present_in_not
- reconcile.reconcile_row, reconcile.Reconciler, reconcile.ReportRecord
- batch.run_batches, batch.iter_groups
- io.read_input_rows, io.write_report_csv, io.REPORT_HEADERS
- pipeline.reconcile_file, pipeline.reconcile_one, pipeline.write_output
"""

from . import canonical, options, compare, reconcile, batch, io, pipeline  # re-export modules

__all__ = [
    "canonical",
    "options",
    "compare",
    "reconcile",
    "batch",
    "io",
    "pipeline",
]
