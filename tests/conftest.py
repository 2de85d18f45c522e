"""Shared pytest fixtures for the cargo-scaffold test suite.

Provides reusable fixtures for:
- Recording yes/no confirmers
- Fake registry, license and asset collaborators (no network)
- A fake command runner that imitates ``cargo init`` and ``git init``
- A ``make_pipeline`` factory wiring all fakes into a ``PipelineBuilder``
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from cargo_scaffold.config import ScaffoldConfig
from cargo_scaffold.errors import AssetError, LicenseLookupError
from cargo_scaffold.licenses import LicenseText
from cargo_scaffold.pipeline import Pipeline, PipelineBuilder
from cargo_scaffold.scaffolder.assets import Asset
from cargo_scaffold.scaffolder.steps import StepContext
from cargo_scaffold.scaffolder.templates import TemplateRenderer
from cargo_scaffold.utils import CommandResult

TEST_YEAR = 2024
TEST_AUTHOR = "refcell"

SPDX_APACHE_TEXT = (
    "Apache License\nVersion 2.0, January 2004\n\n"
    "Copyright [yyyy] [name of copyright owner]\n"
)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class RecordingConfirm:
    """Confirmer that answers with a fixed value and records every prompt."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.prompts: list[str] = []

    def __call__(self, message: str) -> bool:
        self.prompts.append(message)
        return self.answer


class FakeRegistry:
    """Stands in for ``RegistryClient``; unknown crates keep their fallback."""

    def __init__(self, versions: dict[str, str] | None = None) -> None:
        self.versions = versions or {}
        self.calls: list[dict[str, str]] = []

    def resolve(self, dependencies: dict[str, str]) -> dict[str, str]:
        self.calls.append(dict(dependencies))
        return {name: self.versions.get(name, fallback) for name, fallback in dependencies.items()}


class FakeLicenses:
    """Stands in for ``LicenseClient``."""

    def __init__(self, texts: dict[str, str] | None = None) -> None:
        self.texts = texts if texts is not None else {"mit": "MIT License\n\nCopyright (c) <year> <copyright holders>\n"}
        self.calls: list[str] = []

    def fetch(self, identifier: str) -> LicenseText:
        self.calls.append(identifier)
        text = self.texts.get(identifier.lower())
        if text is None:
            raise LicenseLookupError(f'Failed to find license "{identifier}" in SPDX database')
        return LicenseText(spdx_id=identifier.upper(), name=identifier, text=text)


class FakeAssets:
    """Stands in for ``AssetFetcher``; assets named in *failing* raise."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[str] = []

    def fetch(self, asset: Asset, directory: Path) -> Path:
        self.calls.append(asset.filename)
        if asset.filename in self.failing:
            raise AssetError(f"Failed to download {asset.filename}")
        path = directory / asset.filename
        path.write_bytes(b"\x89PNG fake")
        return path


class FakeRunner:
    """Records commands and imitates the filesystem effects of cargo and git.

    Like the real binary, ``cargo init`` fails when ``Cargo.toml`` exists.
    """

    def __init__(self, returncode: int = 0) -> None:
        self.returncode = returncode
        self.calls: list[tuple[list[str], Path | None]] = []

    def __call__(self, cmd: list[str], cwd: str | Path | None = None, timeout: int = 120) -> CommandResult:
        cwd_path = Path(cwd) if cwd is not None else None
        self.calls.append((list(cmd), cwd_path))
        if self.returncode != 0:
            return CommandResult(cmd=list(cmd), returncode=self.returncode, stderr="boom")

        if cmd[:2] == ["cargo", "init"] and cwd_path is not None and (cwd_path / "Cargo.toml").exists():
            return CommandResult(
                cmd=list(cmd),
                returncode=101,
                stderr="error: `cargo init` cannot be run on existing Cargo packages",
            )
        if cmd[:2] == ["cargo", "init"] and cwd_path is not None:
            name = cmd[cmd.index("--name") + 1]
            (cwd_path / "src").mkdir(parents=True, exist_ok=True)
            (cwd_path / "Cargo.toml").write_text(
                f'[package]\nname = "{name}"\nversion = "0.1.0"\nedition = "2021"\n\n[dependencies]\n',
                encoding="utf-8",
            )
            if "--lib" in cmd:
                (cwd_path / "src" / "lib.rs").write_text("pub fn add() {}\n", encoding="utf-8")
            else:
                (cwd_path / "src" / "main.rs").write_text(
                    'fn main() {\n    println!("Hello, world!");\n}\n', encoding="utf-8"
                )
        elif cmd[:2] == ["git", "init"] and cwd_path is not None:
            (cwd_path / ".git").mkdir(exist_ok=True)
        return CommandResult(cmd=list(cmd), returncode=0)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def confirm_yes() -> RecordingConfirm:
    return RecordingConfirm(True)


@pytest.fixture
def confirm_no() -> RecordingConfirm:
    return RecordingConfirm(False)


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry({"eyre": "0.6.12", "clap": "4.5.0"})


@pytest.fixture
def fake_licenses() -> FakeLicenses:
    return FakeLicenses()


@pytest.fixture
def fake_assets() -> FakeAssets:
    return FakeAssets()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def test_logger() -> logging.Logger:
    return logging.getLogger("cargo_scaffold.tests")


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Empty directory the scaffolder writes into."""
    directory = tmp_path / "demo"
    directory.mkdir()
    return directory


@pytest.fixture
def make_context(
    confirm_yes: RecordingConfirm,
    fake_registry: FakeRegistry,
    fake_licenses: FakeLicenses,
    fake_assets: FakeAssets,
    fake_runner: FakeRunner,
    test_logger: logging.Logger,
) -> Callable[..., StepContext]:
    """Factory building a ``StepContext`` over fakes for a config."""

    def _make(config: ScaffoldConfig, **overrides: Any) -> StepContext:
        kwargs: dict[str, Any] = {
            "config": config,
            "logger": test_logger,
            "confirm": confirm_yes,
            "renderer": TemplateRenderer(),
            "registry": fake_registry,
            "licenses": fake_licenses,
            "assets": fake_assets,
            "runner": fake_runner,
            "year": TEST_YEAR,
        }
        kwargs.update(overrides)
        return StepContext(**kwargs)

    return _make


@pytest.fixture
def make_builder(
    confirm_yes: RecordingConfirm,
    fake_registry: FakeRegistry,
    fake_licenses: FakeLicenses,
    fake_assets: FakeAssets,
    fake_runner: FakeRunner,
    test_logger: logging.Logger,
) -> Callable[[Path], PipelineBuilder]:
    """Factory returning a ``PipelineBuilder`` over fakes for a directory."""

    def _make(directory: Path) -> PipelineBuilder:
        return (
            Pipeline.builder()
            .directory(directory)
            .authors([TEST_AUTHOR])
            .confirmer(confirm_yes)
            .registry(fake_registry)
            .license_client(fake_licenses)
            .asset_fetcher(fake_assets)
            .runner(fake_runner)
            .logger(test_logger)
            .year(TEST_YEAR)
        )

    return _make


def snapshot(directory: Path) -> dict[str, bytes]:
    """Return ``{relative posix path: content}`` for every file under *directory*."""
    return {
        p.relative_to(directory).as_posix(): p.read_bytes()
        for p in sorted(directory.rglob("*"))
        if p.is_file()
    }


def created_paths(directory: Path) -> set[str]:
    """Return every file and directory under *directory* as relative posix paths."""
    return {p.relative_to(directory).as_posix() for p in directory.rglob("*")}
