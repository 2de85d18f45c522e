"""Pre-mutation conflict detection.

Runs once before any generation step touches the disk.  It looks for
artifacts a run would overwrite and asks the user once; a single "yes"
covers the rest of the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from cargo_scaffold.errors import ConflictError

logger = logging.getLogger(__name__)

Confirmer = Callable[[str], bool]

_CONFLICT_PROMPT = "[WARNING] Found conflicting files. Are you sure you wish to proceed?"
_README_PROMPT = (
    "[WARNING] Found README.md in the project directory. Proceeding will overwrite "
    "this file. Are you sure you wish to proceed?"
)


def conflict_candidates(directory: Path, will_touch_ci: bool) -> list[tuple[Path, str]]:
    """Return ``(artifact, prompt)`` pairs in the order they are checked."""
    candidates = [
        (directory / "Cargo.toml", _CONFLICT_PROMPT),
        (directory / "LICENSE", _CONFLICT_PROMPT),
        (directory / "README.md", _README_PROMPT),
    ]
    if will_touch_ci:
        candidates.append((directory / ".github" / "workflows" / "ci.yml", _CONFLICT_PROMPT))
    return candidates


def check_conflicts(
    directory: Path,
    will_touch_ci: bool,
    dry_run: bool,
    confirm: Confirmer,
    log: logging.Logger | None = None,
) -> Path | None:
    """Gate the pipeline on pre-existing artifacts.

    Args:
        directory: Target project directory.
        will_touch_ci: Whether a CI workflow will be written.
        dry_run: Dry runs never conflict because nothing is written.
        confirm: Yes/no prompt capability.
        log: Logger to report through (defaults to this module's logger).

    Returns:
        The artifact the user agreed to overwrite, or ``None`` when nothing
        conflicted.

    Raises:
        ConflictError: The user declined to overwrite the first conflict.
    """
    log = log or logger
    if dry_run:
        return None

    for artifact, prompt in conflict_candidates(directory, will_touch_ci):
        if not artifact.exists():
            continue
        log.warning("%s detected in the project directory", artifact.name)
        if not confirm(prompt):
            raise ConflictError(artifact)
        return artifact
    return None
