"""Exception hierarchy for cargo-scaffold.

Every error raised on purpose by the pipeline derives from ``ScaffoldError``
so the CLI entry point can map it to an exit status with a single ``except``
clause.  User aborts are errors too, but the CLI treats a plain ``UserAbort``
as a clean early return.
"""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for all cargo-scaffold errors."""


# ---------------------------------------------------------------------------
# User decisions
# ---------------------------------------------------------------------------


class UserAbort(ScaffoldError):
    """Raised when the user declines a confirmation prompt."""


class ConflictError(UserAbort):
    """Raised when an existing artifact would be overwritten and the user declined."""

    def __init__(self, artifact: Path) -> None:
        self.artifact = artifact
        super().__init__(f"Refusing to overwrite existing {artifact.name} at {artifact}")


# ---------------------------------------------------------------------------
# I/O and external capabilities
# ---------------------------------------------------------------------------


class ScaffoldIOError(ScaffoldError):
    """Raised when a filesystem or process operation fails."""


class CommandError(ScaffoldIOError):
    """Raised when an external command exits non-zero or cannot be started."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str = "") -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"`{' '.join(cmd)}` exited with status {returncode}{detail}")


class ExternalLookupError(ScaffoldError):
    """Raised when a network lookup (license, version, asset) fails."""


class LicenseLookupError(ExternalLookupError):
    """Raised when a license text cannot be resolved for an SPDX identifier."""


class AssetError(ExternalLookupError):
    """Raised when a template asset cannot be downloaded or decoded."""


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class PipelineStateError(ScaffoldError):
    """Raised when a pipeline transition is attempted from the wrong state."""


class PipelineError(ScaffoldError):
    """Raised when a generation step fails irrecoverably."""

    def __init__(self, step: str, message: str) -> None:
        self.step = step
        super().__init__(f"Step {step}: {message}")
