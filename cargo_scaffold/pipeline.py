"""cargo-scaffold pipeline orchestrator.

Drives the generation steps in a fixed order behind a conflict gate:

    gate      -- refuse (or confirm) before touching existing artifacts.
    execute   -- run every enabled step, recording a preview tree.
    commit    -- print the preview (dry run) or a summary (real run).

A pipeline is single-use: ``Built -> Executed -> Committed``.

Usage::

    cargo-scaffold ./demo --name demo --license --gitignore
    cargo-scaffold ./demo --dry-run --full
    python -m cargo_scaffold --list
"""

from __future__ import annotations

import argparse
import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from jinja2 import TemplateError
from pydantic import ValidationError
from rich.table import Table

from cargo_scaffold.config import BUNDLED_WORKFLOWS, NetworkConfig, ScaffoldConfig
from cargo_scaffold.conflicts import Confirmer, check_conflicts
from cargo_scaffold.errors import (
    ConflictError,
    ExternalLookupError,
    PipelineError,
    PipelineStateError,
    ScaffoldError,
    ScaffoldIOError,
    UserAbort,
)
from cargo_scaffold.licenses import LicenseClient
from cargo_scaffold.preview import PreviewTree
from cargo_scaffold.registry import DEFAULT_DEPENDENCIES, RegistryClient
from cargo_scaffold.scaffolder import DEFAULT_STEPS, AssetFetcher, GenerationStep, StepContext
from cargo_scaffold.scaffolder.steps import Runner
from cargo_scaffold.scaffolder.templates import TemplateRenderer
from cargo_scaffold.utils import (
    LOGGER_NAME,
    confirm as ask_confirm,
    console,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    setup_logging,
)

_OVERWRITE_PROMPT = (
    "[WARNING] Overwrite mode will overwrite any conflicting files and directories. "
    "Are you sure you wish to proceed?"
)
_ABORT_MESSAGE = "Phew, close call... aborting"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class PipelineStatus(str, Enum):
    BUILT = "built"
    EXECUTED = "executed"
    COMMITTED = "committed"


@dataclass
class PipelineResult:
    """Outcome of :meth:`Pipeline.execute`.

    Attributes:
        aborted: The gate stopped the run before any step ran.
        conflict: The artifact the user refused to overwrite, if any.
        message: Human-readable reason for an abort.
        steps_completed: Names of the steps that ran, in order.
        preview: Everything the steps created (or would create).
        duration: Wall-clock seconds spent in ``execute``.
    """

    aborted: bool = False
    conflict: Path | None = None
    message: str = ""
    steps_completed: list[str] = field(default_factory=list)
    preview: PreviewTree | None = None
    duration: float = 0.0


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class Pipeline:
    """Single-use scaffolding run over a validated ``ScaffoldConfig``.

    Collaborators default to the real implementations; tests replace them
    with fakes so no run touches the network, a terminal prompt, ``cargo``
    or ``git``.
    """

    def __init__(
        self,
        config: ScaffoldConfig,
        *,
        confirm: Confirmer | None = None,
        logger: logging.Logger | None = None,
        renderer: TemplateRenderer | None = None,
        registry: RegistryClient | None = None,
        licenses: LicenseClient | None = None,
        assets: AssetFetcher | None = None,
        runner: Runner | None = None,
        steps: Iterable[GenerationStep] = DEFAULT_STEPS,
        year: int | None = None,
    ) -> None:
        self.config = config
        self.confirm = confirm or ask_confirm
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.steps: tuple[GenerationStep, ...] = tuple(steps)
        self.status = PipelineStatus.BUILT
        self.result: PipelineResult | None = None

        context_kwargs: dict[str, Any] = {}
        if year is not None:
            context_kwargs["year"] = year
        self.context = StepContext(
            config=config,
            logger=self.logger,
            confirm=self.confirm,
            renderer=renderer or TemplateRenderer(),
            registry=registry or RegistryClient.from_config(config.network),
            licenses=licenses or LicenseClient.from_config(config.network),
            assets=assets or AssetFetcher.from_config(config.network),
            runner=runner or run_command,
            **context_kwargs,
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @staticmethod
    def builder() -> "PipelineBuilder":
        return PipelineBuilder()

    @staticmethod
    def with_name(name: str) -> "PipelineBuilder":
        """Start a builder with the project name already set."""
        return PipelineBuilder().name(name)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def execute(self) -> PipelineResult:
        """Run the conflict gate and every enabled step.

        Returns:
            A ``PipelineResult``.  When the gate declines, the result is
            ``aborted`` and nothing has been written.

        Raises:
            PipelineStateError: The pipeline already ran.
            PipelineError: A step failed.  Earlier steps are not rolled back.
        """
        if self.status is not PipelineStatus.BUILT:
            raise PipelineStateError("Pipeline has already been executed")
        self.status = PipelineStatus.EXECUTED

        start = time.monotonic()
        target = self.config.directory

        try:
            self._gate()
        except UserAbort as exc:
            self.logger.warning("%s", exc)
            self.result = PipelineResult(
                aborted=True,
                conflict=exc.artifact if isinstance(exc, ConflictError) else None,
                message=str(exc),
                duration=time.monotonic() - start,
            )
            return self.result

        if not self.config.dry_run:
            self.logger.warning("Running in non-dry run mode. This action may be destructive.")

        tree = PreviewTree(str(target))
        completed: list[str] = []
        for step in self.steps:
            if not step.enabled(self.config):
                self.logger.debug("Skipping step %s", step.name)
                continue
            self.logger.debug("Running step %s", step.name)
            try:
                step.create(target, self.context, self.config.dry_run, tree)
            except (OSError, ScaffoldIOError, ExternalLookupError, TemplateError) as exc:
                self.logger.error("Step %s failed: %s", step.name, exc)
                raise PipelineError(step.name, str(exc)) from exc
            completed.append(step.name)

        self.result = PipelineResult(
            steps_completed=completed,
            preview=tree,
            duration=time.monotonic() - start,
        )
        return self.result

    def commit(self) -> PipelineResult:
        """Finalize an executed run.

        A dry run prints the preview tree; a real run prints a summary.
        """
        if self.status is PipelineStatus.BUILT:
            raise PipelineStateError("Pipeline has not been executed")
        if self.status is PipelineStatus.COMMITTED:
            raise PipelineStateError("Pipeline already committed")
        if self.result is None:
            raise PipelineStateError("Pipeline execution did not complete")
        self.status = PipelineStatus.COMMITTED

        if self.result.aborted:
            return self.result

        if self.config.dry_run and self.result.preview is not None:
            console.print(self.result.preview.to_rich(), highlight=False)
        else:
            print_summary_table(
                {
                    "Project": self.config.name,
                    "Directory": str(self.config.directory),
                    "Mode": self._mode_label(),
                    "Steps": ", ".join(self.result.steps_completed),
                    "Duration": format_duration(self.result.duration),
                },
                title="Scaffold Summary",
            )
            print_success(f"Scaffolded {self.config.name} in {self.config.directory}")
        return self.result

    def run(self) -> PipelineResult:
        """``execute()`` then, unless the gate aborted, ``commit()``."""
        result = self.execute()
        if not result.aborted:
            self.commit()
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _gate(self) -> Path | None:
        """Either confirm overwrite mode once or run the conflict detector."""
        if self.config.dry_run:
            return None
        if self.config.overwrite:
            self.logger.warning("Overwrite flag is set, existing files will be overwritten")
            if not self.confirm(_OVERWRITE_PROMPT):
                raise UserAbort(_ABORT_MESSAGE)
            return None
        return check_conflicts(
            self.config.directory,
            self.config.will_touch_ci,
            self.config.dry_run,
            self.confirm,
            log=self.logger,
        )

    def _mode_label(self) -> str:
        if self.config.bin:
            return "bin (bare)" if self.config.bare else "bin"
        if self.config.lib:
            return "lib (bare)" if self.config.bare else "lib"
        return "workspace"


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class PipelineBuilder:
    """Immutable builder for :class:`Pipeline`.

    Every mutator returns a new builder; ``build()`` validates the collected
    options into a ``ScaffoldConfig``.
    """

    def __init__(
        self,
        options: dict[str, Any] | None = None,
        collaborators: dict[str, Any] | None = None,
    ) -> None:
        self._options: dict[str, Any] = dict(options or {})
        self._collaborators: dict[str, Any] = dict(collaborators or {})

    @property
    def options(self) -> dict[str, Any]:
        return dict(self._options)

    def _with(self, **options: Any) -> "PipelineBuilder":
        return PipelineBuilder({**self._options, **options}, self._collaborators)

    def _using(self, **collaborators: Any) -> "PipelineBuilder":
        return PipelineBuilder(self._options, {**self._collaborators, **collaborators})

    # -- Project ---------------------------------------------------------------

    def directory(self, path: str | Path) -> "PipelineBuilder":
        return self._with(directory=Path(path))

    def name(self, name: str) -> "PipelineBuilder":
        return self._with(name=name)

    def description(self, description: str | None) -> "PipelineBuilder":
        return self._with(description=description)

    def authors(self, authors: Sequence[str] | None) -> "PipelineBuilder":
        return self._with(authors=list(authors) if authors is not None else None)

    def dependencies(self, names: Sequence[str]) -> "PipelineBuilder":
        return self._with(dependencies=list(names))

    def with_license(self, identifier: str | None) -> "PipelineBuilder":
        return self._with(with_license=identifier)

    def ci_yml(self, path: str | Path | None) -> "PipelineBuilder":
        return self._with(ci_yml=Path(path) if path is not None else None)

    def workflows(self, names: Sequence[str]) -> "PipelineBuilder":
        return self._with(workflows=list(names))

    def verbosity(self, level: int) -> "PipelineBuilder":
        return self._with(verbosity=level)

    def network(self, network: NetworkConfig) -> "PipelineBuilder":
        return self._with(network=network)

    # -- Flags -------------------------------------------------------------------

    def dry_run(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(dry_run=enabled)

    def overwrite(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(overwrite=enabled)

    def with_ci(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(with_ci=enabled)

    def license(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(license=enabled)

    def gitignore(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(gitignore=enabled)

    def etc(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(etc=enabled)

    def assets(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(assets=enabled)

    def bin(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(bin=enabled)

    def lib(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(lib=enabled)

    def full(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(full=enabled)

    def bare(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(bare=enabled)

    def without_readme(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(without_readme=enabled)

    def git(self, enabled: bool = True) -> "PipelineBuilder":
        return self._with(git=enabled)

    # -- Collaborators -------------------------------------------------------------

    def confirmer(self, confirm: Confirmer) -> "PipelineBuilder":
        return self._using(confirm=confirm)

    def logger(self, logger: logging.Logger) -> "PipelineBuilder":
        return self._using(logger=logger)

    def runner(self, runner: Runner) -> "PipelineBuilder":
        return self._using(runner=runner)

    def registry(self, registry: RegistryClient) -> "PipelineBuilder":
        return self._using(registry=registry)

    def license_client(self, licenses: LicenseClient) -> "PipelineBuilder":
        return self._using(licenses=licenses)

    def asset_fetcher(self, fetcher: AssetFetcher) -> "PipelineBuilder":
        return self._using(assets=fetcher)

    def renderer(self, renderer: TemplateRenderer) -> "PipelineBuilder":
        return self._using(renderer=renderer)

    def steps(self, steps: Iterable[GenerationStep]) -> "PipelineBuilder":
        return self._using(steps=tuple(steps))

    def year(self, year: int) -> "PipelineBuilder":
        return self._using(year=year)

    # -- Finalize --------------------------------------------------------------

    def build(self) -> Pipeline:
        """Validate the options and return a new :class:`Pipeline`.

        Raises:
            pydantic.ValidationError: The options are inconsistent.
        """
        config = ScaffoldConfig(**self._options)
        return Pipeline(config, **self._collaborators)


# ---------------------------------------------------------------------------
# Dependency listing
# ---------------------------------------------------------------------------


def list_dependencies() -> None:
    """Print the default workspace dependencies and their fallback versions."""
    table = Table(title="Default Dependencies", show_header=True, header_style="bold cyan")
    table.add_column("Dependency", no_wrap=True)
    table.add_column("Version")
    for name, version in DEFAULT_DEPENDENCIES.items():
        table.add_row(name, version)
    console.print(table)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargo-scaffold",
        description="Scaffold a Rust workspace, binary crate or library crate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  cargo-scaffold ./demo --name demo --license --gitignore\n"
            "  cargo-scaffold ./tool --bin --bare --dry-run\n"
            "  cargo-scaffold ./demo --full --with-license apache-2.0\n"
        ),
    )

    parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Project directory (default: current directory)",
    )
    parser.add_argument("--name", "-n", default="example", help="Project name (default: example)")
    parser.add_argument("--description", "-d", default=None, help="Project description")
    parser.add_argument(
        "--authors", "-a",
        nargs="+",
        default=None,
        help="Manifest authors (default: git user.name, then login name)",
    )
    parser.add_argument(
        "--dependencies",
        nargs="+",
        default=[],
        help="Extra crates to add to the workspace dependencies",
    )
    parser.add_argument("--with-license", default=None, help="SPDX identifier (implies --license)")
    parser.add_argument("--ci-yml", "-c", default=None, help="Workflow file to copy as ci.yml")
    parser.add_argument(
        "--workflow",
        action="append",
        choices=BUNDLED_WORKFLOWS,
        default=[],
        dest="workflows",
        help="Bundled workflow to add (repeatable)",
    )
    parser.add_argument("-v", action="count", default=0, dest="verbosity", help="Increase verbosity")

    parser.add_argument("--dry-run", action="store_true", help="Preview without writing anything")
    parser.add_argument("--overwrite", action="store_true", help="Overwrite conflicting files")
    parser.add_argument("--with-ci", "-w", action="store_true", help="Add the CI workflow")
    parser.add_argument("--bin", "-b", action="store_true", help="Create a binary crate")
    parser.add_argument("--lib", "-l", action="store_true", help="Create a library crate")
    parser.add_argument("--bare", action="store_true", help="Keep the cargo init manifest as is")
    parser.add_argument("--without-readme", action="store_true", help="Skip README.md")
    parser.add_argument("--full", action="store_true", help="ci, license, gitignore, etc and assets")
    parser.add_argument("--etc", action="store_true", help="Create the etc/ directory")
    parser.add_argument("--assets", action="store_true", help="Download template images into etc/")
    parser.add_argument("--license", action="store_true", help="Add a LICENSE file")
    parser.add_argument("--gitignore", action="store_true", help="Add a Rust .gitignore")
    parser.add_argument("--git", action="store_true", help="Initialise a git repository")
    parser.add_argument("--list", action="store_true", help="List default dependencies and exit")
    return parser


def config_from_args(args: argparse.Namespace) -> ScaffoldConfig:
    """Build a validated ``ScaffoldConfig`` from parsed CLI arguments."""
    return ScaffoldConfig(
        directory=Path(args.directory),
        name=args.name,
        description=args.description,
        authors=args.authors,
        dependencies=args.dependencies,
        with_license=args.with_license,
        ci_yml=Path(args.ci_yml) if args.ci_yml else None,
        workflows=args.workflows,
        verbosity=min(args.verbosity, 4),
        dry_run=args.dry_run,
        overwrite=args.overwrite,
        with_ci=args.with_ci,
        bin=args.bin,
        lib=args.lib,
        bare=args.bare,
        without_readme=args.without_readme,
        full=args.full,
        etc=args.etc,
        assets=args.assets,
        license=args.license,
        gitignore=args.gitignore,
        git=args.git,
        network=NetworkConfig.from_env(),
    )


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point for ``cargo-scaffold`` and ``python -m cargo_scaffold``.

    Returns the process exit status: ``0`` on success or a user abort, ``1``
    on a declined conflict or a failed step, ``2`` on invalid options.
    """
    args = build_parser().parse_args(argv)

    if args.list:
        list_dependencies()
        return 0

    try:
        config = config_from_args(args)
    except (ValidationError, ValueError) as exc:
        print_error(f"Invalid configuration: {exc}")
        return 2

    logger = setup_logging(config.verbosity)
    pipeline = Pipeline(config, logger=logger)

    try:
        result = pipeline.run()
    except PipelineError as exc:
        print_error(str(exc))
        return 1
    except ScaffoldError as exc:
        print_error(f"Error: {exc}")
        return 1

    if result.aborted:
        if result.conflict is not None:
            print_error(result.message)
            return 1
        print_warning(result.message)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
