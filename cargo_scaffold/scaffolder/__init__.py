"""cargo-scaffold scaffolder -- generation steps and their templates.

Each step writes one category of artifacts into the target directory and
mirrors what it writes into a preview tree.

Quick usage::

    from cargo_scaffold.scaffolder import DEFAULT_STEPS, StepContext

    for step in DEFAULT_STEPS:
        if step.enabled(config):
            step.create(config.directory, ctx, config.dry_run, tree)
"""

from cargo_scaffold.scaffolder.assets import ASSETS, Asset, AssetFetcher
from cargo_scaffold.scaffolder.manifests import build_manifest_context
from cargo_scaffold.scaffolder.steps import (
    DEFAULT_STEPS,
    CiStep,
    EtcStep,
    GenerationStep,
    GitignoreStep,
    GitStep,
    LicenseStep,
    RootStep,
    StepContext,
    WorkspaceStep,
)
from cargo_scaffold.scaffolder.templates import TemplateRenderer

__all__ = [
    "ASSETS",
    "Asset",
    "AssetFetcher",
    "CiStep",
    "DEFAULT_STEPS",
    "EtcStep",
    "GenerationStep",
    "GitStep",
    "GitignoreStep",
    "LicenseStep",
    "RootStep",
    "StepContext",
    "TemplateRenderer",
    "WorkspaceStep",
    "build_manifest_context",
]
