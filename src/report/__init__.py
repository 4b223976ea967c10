"""Result aggregation and reporting."""

from report.render import (
    REPORT_FORMATS,
    render,
    render_dependency_tree,
    render_levels,
    to_json,
)
from report.summary import RunSummary, SummaryFinalizedError, summarize

__all__ = [
    "REPORT_FORMATS",
    "RunSummary",
    "SummaryFinalizedError",
    "render",
    "render_dependency_tree",
    "render_levels",
    "summarize",
    "to_json",
]
