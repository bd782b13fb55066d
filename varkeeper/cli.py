"""CLI entry point: varkeeper.

Subcommands (all read-only, over a scanner JSON snapshot):
    varkeeper classify snapshot.json              # Annotate packages
    varkeeper plan snapshot.json -l /library      # Merge + resolve plan
    varkeeper impact snapshot.json FILE...        # Deletion cascades
    varkeeper locate snapshot.json DEP_ID         # Where a dependency points
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
import structlog

from varkeeper.core.logging import setup_logging
from varkeeper.core.patterns import system_patterns_from_env
from varkeeper.models.package import PackageRecord
from varkeeper.schemas.report import ImpactOut, PlanOut, ResolutionOut
from varkeeper.schemas.snapshot import PackageView, load_snapshot
from varkeeper.services import ServiceError, ValidationError
from varkeeper.services.local_mutation import LocalMutationService
from varkeeper.services.reconciliation_service import LibraryContext, ReconciliationService

log = structlog.get_logger("varkeeper.cli")

_DEFAULT_LIBRARY_ROOT = os.environ.get("VARKEEPER_LIBRARY_ROOT", "")

_SCOPES = ("all", "duplicates", "obsolete")


@contextmanager
def _service_errors() -> Iterator[None]:
    try:
        yield
    except ServiceError as exc:
        raise click.ClickException(str(exc)) from exc


def _load(snapshot_file: str) -> list[PackageRecord]:
    try:
        payload = json.loads(Path(snapshot_file).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{snapshot_file}: not valid JSON ({exc})") from exc
    return load_snapshot(payload)


def _service(ctx: click.Context, library_root: str) -> tuple[ReconciliationService, LibraryContext]:
    patterns = ctx.obj["system_patterns"]
    service = ReconciliationService(LocalMutationService(library_root or "."), patterns)
    return service, LibraryContext(library_root=library_root)


def _emit(data: object) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option(
    "--system-pattern",
    "system_pattern",
    multiple=True,
    help="Dependency-id prefix treated as system/core (repeatable)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, system_pattern: tuple[str, ...]) -> None:
    """varkeeper: reconcile a library of versioned content packages."""
    setup_logging(level="DEBUG" if verbose else None)
    ctx.ensure_object(dict)
    ctx.obj["system_patterns"] = system_pattern or system_patterns_from_env()


@main.command("classify")
@click.argument("snapshot_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--problems-only", is_flag=True, help="Only list flagged packages")
@click.pass_context
def classify_cmd(ctx: click.Context, snapshot_file: str, problems_only: bool) -> None:
    """Flag obsolete, duplicate and missing-dependency packages."""
    with _service_errors():
        records = _load(snapshot_file)
        service, lib = _service(ctx, _DEFAULT_LIBRARY_ROOT)
        classified = service.classify(lib, records)

    if problems_only:
        classified = [
            r for r in classified
            if r.is_obsolete or r.is_exact_duplicate or r.missing_dependencies
        ]
    _emit(
        {
            "packages": [PackageView.from_record(r).model_dump(by_alias=True) for r in classified],
            "summary": {
                "total": len(records),
                "obsolete": sum(r.is_obsolete for r in classified),
                "duplicates": sum(r.is_exact_duplicate for r in classified),
                "missing_dependencies": sum(bool(r.missing_dependencies) for r in classified),
            },
        }
    )


@main.command("plan")
@click.argument("snapshot_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-l", "--library", "library_root", default=_DEFAULT_LIBRARY_ROOT, help="Library root directory")
@click.option("--scope", type=click.Choice(_SCOPES), default="all", show_default=True)
@click.option("--package", "package_path", default=None, help="Plan only this package's group")
@click.pass_context
def plan_cmd(
    ctx: click.Context,
    snapshot_file: str,
    library_root: str,
    scope: str,
    package_path: str | None,
) -> None:
    """Compute the merge plan and resolve groups (nothing is executed)."""
    with _service_errors():
        service, lib = _service(ctx, library_root)
        records = service.classify(lib, _load(snapshot_file))
        if package_path:
            group_plan = service.plan_for_package(lib, records, package_path)
            plan = service.plan_all(lib, records, lambda r: r.group_key == group_plan.group_key)
        elif scope == "duplicates":
            plan = service.plan_all(lib, records, lambda r: r.is_exact_duplicate)
        elif scope == "obsolete":
            plan = service.plan_all(lib, records, lambda r: r.is_obsolete)
        else:
            plan = service.plan_all(lib, records)

    if plan.is_empty:
        log.info("cli.nothing_to_do", scope=scope)
    _emit(PlanOut.from_plan(plan).model_dump())


@main.command("impact")
@click.argument("snapshot_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("targets", nargs=-1, required=True)
@click.pass_context
def impact_cmd(ctx: click.Context, snapshot_file: str, targets: tuple[str, ...]) -> None:
    """Show safe and forced cascades for deleting TARGETS (file paths)."""
    with _service_errors():
        service, lib = _service(ctx, _DEFAULT_LIBRARY_ROOT)
        impact = service.impact(lib, _load(snapshot_file), list(targets))
    _emit(ImpactOut.from_impact(impact).model_dump())


@main.command("locate")
@click.argument("snapshot_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("dep_id")
@click.pass_context
def locate_cmd(ctx: click.Context, snapshot_file: str, dep_id: str) -> None:
    """Resolve DEP_ID to the package a user would open."""
    with _service_errors():
        service, lib = _service(ctx, _DEFAULT_LIBRARY_ROOT)
        graph = service.graph(lib, _load(snapshot_file))
    resolution = graph.locate(dep_id)
    _emit(ResolutionOut.from_resolution(resolution).model_dump())
    if resolution.status == "missing":
        ctx.exit(1)


if __name__ == "__main__":
    main()
