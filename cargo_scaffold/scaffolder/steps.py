"""Generation steps.

Each step owns one category of artifacts and knows three things: whether the
configuration asks for it, how to create its files, and how to describe
them in the preview tree.  Steps record the same entries on a dry run and a
real run, so the preview always matches what a real run would write.

The pipeline runs ``DEFAULT_STEPS`` in order::

    root -> license -> gitignore -> etc -> workspace -> ci -> git
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any

from cargo_scaffold.conflicts import Confirmer
from cargo_scaffold.config import ScaffoldConfig
from cargo_scaffold.errors import AssetError, LicenseLookupError
from cargo_scaffold.licenses import LicenseClient, build_mit_license, current_year, impute_license
from cargo_scaffold.preview import TreeSink
from cargo_scaffold.registry import RegistryClient, merge_dependencies
from cargo_scaffold.utils import CommandResult, current_username, run_command

from .assets import ASSETS, AssetFetcher
from .manifests import COMMON_CRATE, build_manifest_context, git_remote_target
from .templates import TemplateRenderer

Runner = Callable[..., CommandResult]


# ---------------------------------------------------------------------------
# Step context
# ---------------------------------------------------------------------------


@dataclass
class StepContext:
    """Collaborators shared by every step of one run.

    ``username`` and ``manifest`` are resolved on first use, so a dry run
    never spawns ``git`` or queries the registry.
    """

    config: ScaffoldConfig
    logger: logging.Logger
    confirm: Confirmer
    renderer: TemplateRenderer
    registry: RegistryClient
    licenses: LicenseClient
    assets: AssetFetcher
    runner: Runner = run_command
    year: int = field(default_factory=current_year)

    @cached_property
    def username(self) -> str:
        return current_username(self.config.authors)

    @cached_property
    def manifest(self) -> dict[str, Any]:
        """Template context with dependency versions resolved via the registry."""
        versions = self.registry.resolve(merge_dependencies(self.config.dependencies))
        return build_manifest_context(
            self.config,
            username=self.username,
            authors=list(self.config.authors or [self.username]),
            versions=versions,
            year=self.year,
        )


# ---------------------------------------------------------------------------
# Base step
# ---------------------------------------------------------------------------


class GenerationStep:
    """One category of generated artifacts."""

    name: str = "step"

    def enabled(self, config: ScaffoldConfig) -> bool:
        return True

    def create(self, target: Path, ctx: StepContext, dry_run: bool, tree: TreeSink) -> None:
        raise NotImplementedError

    # -- Helpers -------------------------------------------------------------

    @staticmethod
    def _ensure_dir(path: Path, dry_run: bool) -> None:
        if not dry_run:
            path.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _emit(
        path: Path,
        content: Callable[[], str],
        ctx: StepContext,
        dry_run: bool,
        tree: TreeSink,
    ) -> None:
        """Write ``content()`` to *path* and record it as a leaf.

        *content* is only called on a real run.
        """
        if not dry_run:
            ctx.logger.debug("Writing %s", path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content(), encoding="utf-8")
        tree.add_leaf(path.name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


class RootStep(GenerationStep):
    """Ensure the target directory exists."""

    name = "root"

    def create(self, target: Path, ctx: StepContext, dry_run: bool, tree: TreeSink) -> None:
        ctx.logger.info("Preparing project directory %s", target)
        self._ensure_dir(target, dry_run)


class LicenseStep(GenerationStep):
    """Write ``LICENSE`` from the SPDX list, falling back to bundled MIT."""

    name = "license"

    def enabled(self, config: ScaffoldConfig) -> bool:
        return config.include_license

    def create(self, target: Path, ctx: StepContext, dry_run: bool, tree: TreeSink) -> None:
        ctx.logger.info("Creating license file")
        if dry_run:
            tree.add_leaf("LICENSE")
            return

        text = self._resolve_text(ctx)
        if text is None:
            ctx.logger.warning("User chose not to proceed with the MIT License")
            return
        self._emit(target / "LICENSE", lambda: text, ctx, dry_run, tree)

    @staticmethod
    def _resolve_text(ctx: StepContext) -> str | None:
        identifier = ctx.config.license_type
        try:
            license_text = ctx.licenses.fetch(identifier)
        except LicenseLookupError as exc:
            ctx.logger.warning("%s", exc)
            prompt = (
                f'Failed to query for license "{identifier}", do you want to proceed '
                "with the MIT License instead?"
            )
            if not ctx.confirm(prompt):
                return None
            return build_mit_license(ctx.username, ctx.year)
        return impute_license(license_text.text, ctx.username, ctx.year)


class GitignoreStep(GenerationStep):
    """Append the Rust ``.gitignore`` template."""

    name = "gitignore"

    def enabled(self, config: ScaffoldConfig) -> bool:
        return config.gitignore

    def create(self, target: Path, ctx: StepContext, dry_run: bool, tree: TreeSink) -> None:
        ctx.logger.info("Creating a .gitignore file")
        path = target / ".gitignore"
        if not dry_run:
            ctx.logger.debug("Appending Rust template to %s", path)
            with path.open("a", encoding="utf-8") as fh:
                fh.write(ctx.renderer.read_static("gitignore/Rust.gitignore"))
        tree.add_leaf(".gitignore")


class EtcStep(GenerationStep):
    """Create ``etc/`` and optionally download the template images into it."""

    name = "etc"

    def enabled(self, config: ScaffoldConfig) -> bool:
        return config.etc

    def create(self, target: Path, ctx: StepContext, dry_run: bool, tree: TreeSink) -> None:
        ctx.logger.info("Creating etc directory")
        etc_dir = target / "etc"
        self._ensure_dir(etc_dir, dry_run)
        tree.begin("etc")
        if ctx.config.assets:
            for asset in ASSETS:
                if dry_run:
                    tree.add_leaf(asset.filename)
                    continue
                try:
                    ctx.assets.fetch(asset, etc_dir)
                except AssetError as exc:
                    ctx.logger.warning("Skipping %s: %s", asset.filename, exc)
                    continue
                tree.add_leaf(asset.filename)
        tree.end()


class WorkspaceStep(GenerationStep):
    """Cargo manifests and crate sources.

    Workspace mode writes the root manifest plus ``bin/<name>`` and
    ``crates/common``.  ``--bin``/``--lib`` delegate to ``cargo init``, or
    reuse an existing ``Cargo.toml`` the user agreed to overwrite, and then
    rewrite the manifest unless ``bare`` is set.
    """

    name = "workspace"

    def create(self, target: Path, ctx: StepContext, dry_run: bool, tree: TreeSink) -> None:
        if ctx.config.workspace_mode:
            self._create_workspace(target, ctx, dry_run, tree)
        else:
            self._create_package(target, ctx, dry_run, tree)

    # -- Workspace mode --------------------------------------------------------

    def _create_workspace(
        self, target: Path, ctx: StepContext, dry_run: bool, tree: TreeSink
    ) -> None:
        config = ctx.config
        renderer = ctx.renderer
        ctx.logger.info("Creating top level workspace artifacts for %s", config.name)

        if not config.without_readme:
            self._emit(
                target / "README.md",
                lambda: renderer.render("workspace/README.md.j2", ctx.manifest),
                ctx, dry_run, tree,
            )
        self._emit(
            target / "Cargo.toml",
            lambda: renderer.render("workspace/Cargo.toml.j2", ctx.manifest),
            ctx, dry_run, tree,
        )

        ctx.logger.info("Creating binary crate")
        crate_dir = target / "bin" / config.name
        self._ensure_dir(crate_dir / "src", dry_run)
        tree.begin("bin")
        tree.begin(config.name)
        self._emit(
            crate_dir / "Cargo.toml",
            lambda: renderer.render("bin/Cargo.toml.j2", ctx.manifest),
            ctx, dry_run, tree,
        )
        tree.begin("src")
        self._emit(
            crate_dir / "src" / "main.rs",
            lambda: renderer.read_static("bin/main.rs"),
            ctx, dry_run, tree,
        )
        tree.end()  # src/
        tree.end()  # <name>/
        tree.end()  # bin/

        ctx.logger.info("Creating lib crate")
        lib_dir = target / "crates" / COMMON_CRATE
        self._ensure_dir(lib_dir / "src", dry_run)
        tree.begin("crates")
        tree.begin(COMMON_CRATE)
        self._emit(
            lib_dir / "Cargo.toml",
            lambda: renderer.render("lib/Cargo.toml.j2", ctx.manifest),
            ctx, dry_run, tree,
        )
        tree.begin("src")
        self._emit(
            lib_dir / "src" / "lib.rs",
            lambda: renderer.read_static("lib/lib.rs"),
            ctx, dry_run, tree,
        )
        tree.end()  # src/
        tree.end()  # common/
        tree.end()  # crates/

    # -- Single package mode -----------------------------------------------------

    def _create_package(
        self, target: Path, ctx: StepContext, dry_run: bool, tree: TreeSink
    ) -> None:
        config = ctx.config
        kind = "--bin" if config.bin else "--lib"
        entrypoint = "main.rs" if config.bin else "lib.rs"
        ctx.logger.info("Creating %s crate %s", kind.lstrip("-"), config.name)

        if not dry_run:
            target.mkdir(parents=True, exist_ok=True)
            if (target / "Cargo.toml").exists():
                # cargo init refuses existing packages; the gate has confirmed the overwrite
                ctx.logger.info("Existing Cargo.toml in %s, skipping cargo init", target)
                self._seed_entrypoint(target / "src" / entrypoint, ctx)
            else:
                cmd = ["cargo", "init", kind, "--vcs", "none", "--name", config.name]
                ctx.logger.debug("Executing `%s` in %s", " ".join(cmd), target)
                result = ctx.runner(cmd, cwd=target).check()
                ctx.logger.debug("cargo init output: %s", result.stderr or result.stdout)

        if config.bare:
            tree.add_leaf("Cargo.toml")
        else:
            self._emit(
                target / "Cargo.toml",
                lambda: ctx.renderer.render("package/Cargo.toml.j2", ctx.manifest),
                ctx, dry_run, tree,
            )
            if not config.without_readme:
                self._emit(
                    target / "README.md",
                    lambda: ctx.renderer.render("package/README.md.j2", ctx.manifest),
                    ctx, dry_run, tree,
                )
        tree.begin("src")
        tree.add_leaf(entrypoint)
        tree.end()

    @staticmethod
    def _seed_entrypoint(path: Path, ctx: StepContext) -> None:
        """Write the bundled ``main.rs``/``lib.rs`` unless *path* already exists."""
        if path.exists():
            return
        source = "bin/main.rs" if path.name == "main.rs" else "lib/lib.rs"
        ctx.logger.debug("Writing %s", path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(ctx.renderer.read_static(source), encoding="utf-8")


class CiStep(GenerationStep):
    """GitHub Actions workflows under ``.github/workflows``."""

    name = "ci"

    def enabled(self, config: ScaffoldConfig) -> bool:
        return config.will_touch_ci

    def create(self, target: Path, ctx: StepContext, dry_run: bool, tree: TreeSink) -> None:
        ctx.logger.info("Creating ci")
        config = ctx.config
        workflows_dir = target / ".github" / "workflows"
        self._ensure_dir(workflows_dir, dry_run)

        names = list(config.selected_workflows)
        if config.ci_yml is not None and "ci" not in names:
            names.insert(0, "ci")

        tree.begin(".github")
        tree.begin("workflows")
        for name in names:
            path = workflows_dir / f"{name}.yml"
            if name == "ci" and config.ci_yml is not None:
                if not dry_run:
                    ctx.logger.debug("Copying %s to %s", config.ci_yml, path)
                    shutil.copyfile(config.ci_yml, path)
                tree.add_leaf(path.name)
                continue
            self._emit(
                path,
                lambda name=name: ctx.renderer.read_static(f"workflows/{name}.yml"),
                ctx, dry_run, tree,
            )
        tree.end()  # workflows/
        tree.end()  # .github/


class GitStep(GenerationStep):
    """Initialise a git repository with a GitHub ``origin`` remote."""

    name = "git"

    def enabled(self, config: ScaffoldConfig) -> bool:
        return config.git

    def create(self, target: Path, ctx: StepContext, dry_run: bool, tree: TreeSink) -> None:
        ctx.logger.info("Initialising git repository")
        if not dry_run:
            ctx.runner(["git", "init", "-b", "main"], cwd=target).check()
            origin = git_remote_target(ctx.username, target.resolve().name)
            ctx.logger.debug("Setting origin remote to %s", origin)
            ctx.runner(["git", "remote", "add", "origin", origin], cwd=target).check()
        tree.add_leaf(".git")


DEFAULT_STEPS: tuple[GenerationStep, ...] = (
    RootStep(),
    LicenseStep(),
    GitignoreStep(),
    EtcStep(),
    WorkspaceStep(),
    CiStep(),
    GitStep(),
)
