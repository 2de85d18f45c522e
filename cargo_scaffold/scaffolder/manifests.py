"""Template contexts for generated manifests and READMEs.

Everything a Jinja2 template under ``templates/`` can reference is assembled
here, once per run, from the frozen ``ScaffoldConfig`` and the values the
pipeline resolved (author names, dependency versions, year).
"""

from __future__ import annotations

from typing import Any

from cargo_scaffold.config import ScaffoldConfig
from cargo_scaffold.licenses import canonical_license_id

COMMON_CRATE = "common"

# Emitted last with the ``derive`` feature enabled.
FEATURED_DEPENDENCY = "clap"


def repository_url(username: str, name: str) -> str:
    """Return the GitHub URL used for ``repository`` and ``homepage``."""
    return f"https://github.com/{username}/{name}"


def git_remote_target(username: str, name: str) -> str:
    return f"{repository_url(username, name)}.git"


def ordered_dependencies(versions: dict[str, str]) -> dict[str, str]:
    """Return *versions* with ``clap`` moved to the end of the table."""
    ordered = {k: v for k, v in versions.items() if k != FEATURED_DEPENDENCY}
    if FEATURED_DEPENDENCY in versions:
        ordered[FEATURED_DEPENDENCY] = versions[FEATURED_DEPENDENCY]
    return ordered


def build_manifest_context(
    config: ScaffoldConfig,
    *,
    username: str,
    authors: list[str],
    versions: dict[str, str],
    year: int,
) -> dict[str, Any]:
    """Assemble the template context for one scaffolding run.

    Args:
        config: The validated run configuration.
        username: Copyright holder and GitHub account for the repository URL.
        authors: Manifest ``authors`` list.
        versions: Resolved ``{crate: version}`` for the dependency table.
        year: Copyright year.
    """
    if config.bin:
        kind = "bin"
    elif config.lib:
        kind = "lib"
    else:
        kind = "workspace"

    return {
        "project_name": config.name,
        "crate_name": COMMON_CRATE,
        "description": config.resolved_description,
        "license_id": canonical_license_id(config.license_type),
        "authors": list(authors),
        "author": username,
        "repository": repository_url(username, config.name),
        "dependencies": ordered_dependencies(versions),
        "year": year,
        "kind": kind,
    }
