"""Command-line interface for monobuild."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from changes.detect import detect_changes, write_change_artifacts
from downstream.notify import DownstreamNotifier
from execute.executor import BuildExecutor
from execute.models import BuildOptions
from execute.output import Console
from execute.plan import plan_build
from graph.levels import GraphError, topological_order
from report.render import REPORT_FORMATS, render, render_dependency_tree, render_levels, to_json
from rules.config import ConfigError, MonobuildConfig, load_config, resolve_output_dir
from utils import split_csv
from versions.scaffold import init_packages
from versions.status import collect_version_status, module_paths, render_status_table
from versions.sync import sync_versions

logger = logging.getLogger(__name__)

_RULE = "=" * 60


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _add_module_option(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument("-m", "--module", default=None, help=help_text)


def _add_dry_run(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="monobuild",
        description="Dependency-aware builds for a Maven/pnpm monorepo",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Repository root containing the root pom.xml (default: .)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init", help="Generate package.json from pom.xml for modules missing one"
    )
    init_parser.add_argument(
        "-f", "--force", action="store_true", help="Overwrite existing package.json files"
    )
    _add_module_option(init_parser, "Initialize only this module")
    _add_dry_run(init_parser)

    status_parser = subparsers.add_parser(
        "status", help="Compare package.json and pom.xml versions"
    )
    _add_module_option(status_parser, "Show only this module")
    status_parser.add_argument("--json", action="store_true", help="Output JSON")
    status_parser.add_argument(
        "-q", "--quiet", action="store_true", help="Print nothing when all versions match"
    )

    sync_parser = subparsers.add_parser(
        "sync", help="Sync pom.xml versions to package.json versions"
    )
    _add_module_option(sync_parser, "Sync only this module")
    sync_parser.add_argument(
        "-r",
        "--reverse",
        action="store_true",
        help="Sync package.json to match pom.xml instead",
    )
    _add_dry_run(sync_parser)

    changed_parser = subparsers.add_parser(
        "changed", aliases=["detect-changes"], help="List modules changed since a base branch"
    )
    changed_parser.add_argument(
        "-b", "--base", default=None, help="Base branch (default: config base_branch)"
    )
    changed_parser.add_argument(
        "--csv", action="store_true", help="Print modules comma-separated"
    )
    changed_parser.add_argument(
        "--output",
        default=None,
        help="Write change detection artifacts to this directory",
    )

    subparsers.add_parser("deps", help="Show the internal dependency tree and build levels")

    build_parser = subparsers.add_parser(
        "build", help="Build modules level by level, in parallel"
    )
    target = build_parser.add_mutually_exclusive_group()
    target.add_argument("--all", action="store_true", help="Build every module")
    target.add_argument(
        "--modules", default=None, help="Comma-separated modules to build"
    )
    build_parser.add_argument(
        "-p", "--max-parallel", type=int, default=None, help="Concurrent builds per level"
    )
    build_parser.add_argument("-g", "--goal", default=None, help="Maven goal")
    tests = build_parser.add_mutually_exclusive_group()
    tests.add_argument(
        "--with-tests",
        dest="skip_tests",
        action="store_false",
        default=None,
        help="Run tests",
    )
    tests.add_argument(
        "--skip-tests",
        dest="skip_tests",
        action="store_true",
        default=None,
        help="Pass -DskipTests",
    )
    build_parser.add_argument(
        "-o", "--offline", action="store_true", default=None, help="Offline mode"
    )
    build_parser.add_argument(
        "--mode",
        choices=["module", "level"],
        default=None,
        help="One subprocess per module, or one per level",
    )
    build_parser.add_argument(
        "--timeout", type=float, default=None, help="Per-build timeout in seconds"
    )
    build_parser.add_argument(
        "--format", choices=REPORT_FORMATS, default="table", help="Summary format"
    )
    build_parser.add_argument(
        "--strict-cycles",
        action="store_true",
        default=None,
        help="Fail instead of building a dependency cycle together",
    )
    build_parser.add_argument(
        "--base", default=None, help="Base branch for change detection"
    )

    downstream_parser = subparsers.add_parser(
        "downstream",
        aliases=["notify-downstream"],
        help="Open pull requests in repositories that depend on a module",
    )
    downstream_parser.add_argument("-m", "--module", required=True, help="Module name")
    downstream_parser.add_argument(
        "--target-version", required=True, help="Version to update dependents to"
    )
    _add_dry_run(downstream_parser)

    return parser


def _handle_init(root: Path, args: argparse.Namespace) -> int:
    report = init_packages(root, module=args.module, force=args.force, dry_run=args.dry_run)
    print("\nInitializing package.json for Maven modules...\n")
    for outcome in report.outcomes:
        if outcome.action == "exists":
            print(f"✓ {outcome.name}: package.json already exists")
        elif outcome.action == "unreadable":
            sys.stderr.write(f"✗ {outcome.name}: Could not read pom.xml\n")
        elif report.dry_run:
            print(
                f"[DRY RUN] {outcome.name}: Would create package.json "
                f"({outcome.pom_version} → {outcome.package_version})"
            )
        else:
            print(
                f"✓ {outcome.name}: Created package.json "
                f"({outcome.pom_version} → {outcome.package_version})"
            )
    print(f"\n{_RULE}")
    print(f"Created: {report.count('created')} | Skipped: {report.count('exists')}\n")
    return 0


def _handle_status(root: Path, args: argparse.Namespace) -> int:
    statuses = collect_version_status(root, args.module)
    mismatches = sum(1 for status in statuses if not status.match)
    if args.json:
        print(to_json([status.model_dump() for status in statuses]))
    elif not (args.quiet and mismatches == 0):
        print(render_status_table(statuses))
    return 1 if mismatches else 0


def _handle_sync(root: Path, args: argparse.Namespace) -> int:
    report = sync_versions(
        root, module=args.module, reverse=args.reverse, dry_run=args.dry_run
    )
    if not report.actions:
        print("\n✓ All versions are in sync. No changes needed.\n")
        return 0

    target = "package.json" if report.reverse else "pom.xml"
    print(f"\nSyncing {target} versions...\n")
    for action in report.actions:
        if report.dry_run:
            print(f"[DRY RUN] Would sync {action.name}: {action.current} → {action.target}")
        elif action.ok:
            print(f"Synced {action.name}: {action.current} → {action.target}")
        else:
            sys.stderr.write(f"  ✗ Failed to update {action.name}\n")
    print(f"\n{_RULE}")
    print(f"Synced: {report.synced} | Failed: {report.failed}\n")
    return report.exit_code


def _handle_changed(root: Path, args: argparse.Namespace) -> int:
    config = load_config(root)
    change_set = detect_changes(
        root,
        module_paths(root),
        base_branch=args.base or config.changes.base_branch,
        base_paths=config.changes.base_paths,
    )
    if args.output:
        out_dir = Path(args.output).expanduser().resolve()
        write_change_artifacts(out_dir, change_set)
        sys.stderr.write(f"Artifacts written to: {out_dir}\n")

    if change_set.changed_modules:
        if args.csv:
            print(",".join(change_set.changed_modules))
        else:
            for name in change_set.changed_modules:
                print(name)
    return 0


def _handle_deps(root: Path) -> int:
    config = load_config(root)
    plan = plan_build(
        root,
        internal_group_ids=config.internal_group_ids or None,
        strict_cycles=config.build.strict_cycles,
    )
    print(
        render_dependency_tree(
            plan.modules, plan.graph, plan.levels, color=Console().color
        )
    )
    print(f"Build order: {', '.join(topological_order(plan.requested, plan.graph))}")
    return 0


def _requested_modules(
    root: Path, args: argparse.Namespace, config: MonobuildConfig
) -> list[str] | None:
    """Explicit modules, None for all, or the changed set (possibly empty)."""
    if args.all:
        return None
    if args.modules is not None:
        return split_csv(args.modules)

    change_set = detect_changes(
        root,
        module_paths(root),
        base_branch=args.base or config.changes.base_branch,
        base_paths=config.changes.base_paths,
    )
    return list(change_set.changed_modules)


def _handle_build(root: Path, args: argparse.Namespace) -> int:
    config = load_config(root)
    requested = _requested_modules(root, args, config)
    if requested is not None and not requested:
        print("No changed modules detected. Nothing to build.")
        return 0

    strict = (
        args.strict_cycles
        if args.strict_cycles is not None
        else config.build.strict_cycles
    )
    plan = plan_build(
        root,
        requested,
        internal_group_ids=config.internal_group_ids or None,
        strict_cycles=strict,
    )

    options = BuildOptions.from_defaults(
        config.build,
        goal=args.goal,
        max_parallel=args.max_parallel,
        skip_tests=args.skip_tests,
        offline=args.offline,
        mode=args.mode,
        timeout_seconds=args.timeout,
        also_make=plan.standalone,
    )

    # Keep stdout clean for the JSON document.
    stream = sys.stderr if args.format == "json" else sys.stdout
    console = Console(stream, color=config.output.color)
    console.write_line(render_levels(plan.levels, color=console.color))

    log_dir = resolve_output_dir(root, config.output_dir) / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    executor = BuildExecutor(
        root,
        options,
        console=console,
        markers=config.output.markers,
        log_dir=log_dir,
        tail_lines=config.output.tail_lines,
        aliases=plan.aliases(),
    )
    summary = executor.execute_levels(plan.levels)
    logger.debug("Peak concurrent builds: %d", executor.peak_running)

    print(render(summary, args.format, color=console.color and args.format == "table"))
    return summary.exit_code


def _handle_downstream(root: Path, args: argparse.Namespace) -> int:
    config = load_config(root)
    token = os.environ.get("GITHUB_TOKEN")
    if not token and not args.dry_run:
        msg = "GITHUB_TOKEN environment variable is required"
        raise ConfigError(msg)

    print(f"Creating downstream PRs for {args.module} v{args.target_version}\n")
    notifier = DownstreamNotifier(config.downstream, token=token, dry_run=args.dry_run)
    report = notifier.notify(root, args.module, args.target_version)
    if not report.outcomes:
        print("No dependents configured")
        return 0

    for outcome in report.outcomes:
        if not outcome.ok:
            print(f"✗ {outcome.repo}: {outcome.error}")
            continue
        if not outcome.changes:
            print(f"✓ {outcome.repo}: no changes needed")
            continue
        label = "[DRY RUN] would update" if report.dry_run else "updated"
        print(f"✓ {outcome.repo}: {label} ({', '.join(outcome.changes)})")
        if outcome.pull_request:
            print(f"  {outcome.pull_request}")

    print(f"\n{_RULE}")
    print(f"Summary: {report.succeeded} successful, {report.failed} failed")
    print(_RULE)
    return report.exit_code


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    root = Path(args.root).expanduser().resolve()

    try:
        if args.command == "init":
            return _handle_init(root, args)
        if args.command == "status":
            return _handle_status(root, args)
        if args.command == "sync":
            return _handle_sync(root, args)
        if args.command in ("changed", "detect-changes"):
            return _handle_changed(root, args)
        if args.command == "deps":
            return _handle_deps(root)
        if args.command == "build":
            return _handle_build(root, args)
        if args.command in ("downstream", "notify-downstream"):
            return _handle_downstream(root, args)
    except (ConfigError, GraphError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
