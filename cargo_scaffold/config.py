"""cargo-scaffold configuration.

Typed, validated record of everything the user asked for.  A
``ScaffoldConfig`` is built once by the CLI entry point (or by
``PipelineBuilder``) and is frozen afterwards, so every generation step sees
the same intent.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


BUNDLED_WORKFLOWS: tuple[str, ...] = ("ci", "release", "tag", "version")

# Cargo package names: ASCII alphanumerics, `-` and `_`, not starting with a digit
_PACKAGE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")


class NetworkConfig(BaseModel):
    """Endpoints and limits for the best-effort network lookups."""

    model_config = ConfigDict(frozen=True)

    registry_url: str = Field(default="https://crates.io/api/v1")
    spdx_url: str = Field(default="https://spdx.org/licenses")
    asset_url: str = Field(
        default="https://raw.githubusercontent.com/refcell/amble/main/etc/template"
    )
    timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")
    user_agent: str = Field(default="cargo-scaffold (https://github.com/refcell/amble)")

    @classmethod
    def from_env(cls) -> "NetworkConfig":
        """Build a ``NetworkConfig`` from environment variables.

        Recognised variables (all optional):
            CARGO_SCAFFOLD_REGISTRY_URL, CARGO_SCAFFOLD_SPDX_URL,
            CARGO_SCAFFOLD_ASSET_URL, CARGO_SCAFFOLD_HTTP_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CARGO_SCAFFOLD_REGISTRY_URL"):
            kwargs["registry_url"] = os.environ["CARGO_SCAFFOLD_REGISTRY_URL"]
        if os.environ.get("CARGO_SCAFFOLD_SPDX_URL"):
            kwargs["spdx_url"] = os.environ["CARGO_SCAFFOLD_SPDX_URL"]
        if os.environ.get("CARGO_SCAFFOLD_ASSET_URL"):
            kwargs["asset_url"] = os.environ["CARGO_SCAFFOLD_ASSET_URL"]
        if os.environ.get("CARGO_SCAFFOLD_HTTP_TIMEOUT"):
            kwargs["timeout"] = float(os.environ["CARGO_SCAFFOLD_HTTP_TIMEOUT"])
        return cls(**kwargs)


class ScaffoldConfig(BaseModel):
    """Immutable description of the project to scaffold.

    When neither ``bin`` nor ``lib`` is set the tool generates a full
    workspace: a root manifest, ``bin/<name>`` and ``crates/common``.
    """

    model_config = ConfigDict(frozen=True)

    directory: Path = Field(default=Path("."))
    name: str = Field(default="example", description="Project and binary crate name")
    description: str | None = Field(default=None)
    authors: list[str] | None = Field(default=None)

    dry_run: bool = False
    overwrite: bool = False
    with_ci: bool = False
    license: bool = False
    gitignore: bool = False
    etc: bool = False
    assets: bool = False
    bin: bool = False
    lib: bool = False
    full: bool = False
    bare: bool = False
    without_readme: bool = False
    git: bool = False

    ci_yml: Path | None = Field(default=None, description="Workflow file to copy instead of ci.yml")
    dependencies: list[str] = Field(default_factory=list)
    with_license: str | None = Field(default=None, description="SPDX license identifier")
    workflows: list[str] = Field(default_factory=list)
    verbosity: int = Field(default=0, ge=0, le=4)

    network: NetworkConfig = Field(default_factory=NetworkConfig)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @model_validator(mode="before")
    @classmethod
    def _expand_meta_flags(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("full"):
            for flag in ("with_ci", "license", "gitignore", "etc", "assets"):
                data[flag] = True
            data["workflows"] = list(BUNDLED_WORKFLOWS)
        if data.get("assets"):
            data["etc"] = True
        return data

    @field_validator("name")
    @classmethod
    def _valid_package_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("project name must not be empty")
        if not _PACKAGE_NAME.fullmatch(value):
            raise ValueError(
                f"invalid project name {value!r}: use letters, digits, '-' or '_' "
                "and do not start with a digit"
            )
        return value

    @field_validator("ci_yml")
    @classmethod
    def _ci_yml_exists(cls, value: Path | None) -> Path | None:
        if value is not None and not value.is_file():
            raise ValueError(f"workflow file {value} does not exist")
        return value

    @field_validator("workflows")
    @classmethod
    def _known_workflows(cls, value: list[str]) -> list[str]:
        unknown = [w for w in value if w not in BUNDLED_WORKFLOWS]
        if unknown:
            raise ValueError(
                f"unknown workflow(s): {', '.join(unknown)} "
                f"(expected one of {', '.join(BUNDLED_WORKFLOWS)})"
            )
        return value

    @model_validator(mode="after")
    def _single_crate_modes_exclusive(self) -> "ScaffoldConfig":
        if self.bin and self.lib:
            raise ValueError("--bin and --lib are mutually exclusive")
        return self

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def workspace_mode(self) -> bool:
        """True when a full workspace (root + bin + common lib) is generated."""
        return not self.bin and not self.lib

    @property
    def include_license(self) -> bool:
        return self.license or self.with_license is not None

    @property
    def license_type(self) -> str:
        return self.with_license or "mit"

    @property
    def selected_workflows(self) -> list[str]:
        """Bundled workflows to write, in ``BUNDLED_WORKFLOWS`` order."""
        wanted = set(self.workflows)
        if self.with_ci:
            wanted.add("ci")
        return [w for w in BUNDLED_WORKFLOWS if w in wanted]

    @property
    def will_touch_ci(self) -> bool:
        return self.ci_yml is not None or bool(self.selected_workflows)

    @property
    def resolved_description(self) -> str:
        if self.description:
            return self.description
        if self.bin:
            return "A new binary crate"
        if self.lib:
            return "A new library crate"
        return f"{self.name} workspace"
