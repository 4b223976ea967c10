"""Human and machine renderings of build plans and run summaries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import orjson

from execute.output import BOLD, BLUE, GREEN, RED, RESET, YELLOW

if TYPE_CHECKING:
    from collections.abc import Sequence

    from graph.algos import DependencyGraph
    from graph.levels import BuildLevel
    from registry.models import Module
    from report.summary import RunSummary

ReportFormat = Literal["table", "json"]
REPORT_FORMATS: tuple[ReportFormat, ...] = ("table", "json")

_RULE_WIDTH = 70
_NAME_WIDTH = 20


def _paint(text: str, code: str, color: bool) -> str:
    return f"{code}{text}{RESET}" if color else text


def to_json(payload: object) -> str:
    opts = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2
    return orjson.dumps(payload, option=opts).decode("utf-8")


def _render_table(summary: RunSummary, *, color: bool) -> str:
    rule = _paint("=" * _RULE_WIDTH, BOLD, color)
    lines = [
        "",
        rule,
        _paint("Build Summary", BOLD, color),
        rule,
        "",
        f"Total Modules: {summary.total}",
        _paint(f"Successful: {summary.succeeded}", GREEN, color),
        _paint(f"Failed: {summary.failed}", RED, color),
        _paint(f"Skipped: {summary.skipped}", YELLOW, color),
        f"Total Time: {summary.wall_clock_seconds:.2f}s",
    ]

    successful = [r for r in summary.results if r.success]
    unsuccessful = [r for r in summary.results if not r.success]
    name_width = max(
        [_NAME_WIDTH, *(len(r.module_name) + 2 for r in summary.results)]
    )

    if successful:
        lines.extend(["", _paint("✓ Successful Builds:", GREEN, color)])
        for result in successful:
            # "~" marks an even share of a whole-level invocation.
            approx = "~" if result.apportioned else ""
            lines.append(
                f"  {result.module_name.ljust(name_width)} "
                f"{approx}{result.duration_seconds:.2f}s"
            )

    if unsuccessful:
        lines.extend(["", _paint("✗ Failed Builds:", RED, color)])
        for result in unsuccessful:
            detail = result.error_detail or "Build failed"
            lines.append(
                f"  {result.module_name.ljust(name_width)} "
                f"{result.status.value.upper():<13} {detail}"
            )
            if result.log_path:
                lines.append(f"  {'':<{name_width}} log: {result.log_path}")

    lines.extend(["", rule, ""])
    return "\n".join(lines)


def render(summary: RunSummary, fmt: ReportFormat = "table", *, color: bool = False) -> str:
    """Render a run summary as a human table or structured JSON."""
    if fmt == "json":
        return to_json(summary.to_dict())
    if fmt == "table":
        return _render_table(summary, color=color)
    msg = f"Unknown report format '{fmt}'. Valid formats: {', '.join(REPORT_FORMATS)}"
    raise ValueError(msg)


def render_levels(levels: Sequence[BuildLevel], *, color: bool = False) -> str:
    lines = [_paint("Dependency Analysis", BOLD, color), "=" * 50]
    for level in levels:
        suffix = " (cycle)" if level.cyclic else ""
        lines.append(f"Level {level.index + 1}: {', '.join(level.modules)}{suffix}")
    lines.append("=" * 50)
    return "\n".join(lines)


def render_dependency_tree(
    modules: Sequence[Module],
    graph: DependencyGraph,
    levels: Sequence[BuildLevel],
    *,
    color: bool = False,
) -> str:
    """Render each module's internal dependencies followed by the build levels."""
    lines = ["", _paint("Module Dependency Tree", BOLD, color), "=" * 50, ""]
    for module in modules:
        deps = sorted(graph.get(module.name, set()))
        if not deps:
            lines.append(
                f"{_paint(module.name, GREEN, color)} (no internal dependencies)"
            )
            continue
        lines.append(_paint(module.name, BLUE, color))
        for i, dep in enumerate(deps):
            branch = "└──" if i == len(deps) - 1 else "├──"
            lines.append(f"  {branch} {dep}")

    lines.extend(
        [
            "",
            _paint("Build Levels (parallel-safe)", BOLD, color),
            "=" * 50,
            "",
        ]
    )
    for level in levels:
        suffix = " (cycle)" if level.cyclic else ""
        lines.append(f"Level {level.index + 1}: {', '.join(level.modules)}{suffix}")
    lines.append("")
    return "\n".join(lines)


__all__ = [
    "REPORT_FORMATS",
    "ReportFormat",
    "render",
    "render_dependency_tree",
    "render_levels",
    "to_json",
]
