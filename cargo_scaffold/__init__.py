"""cargo-scaffold -- scaffold Rust workspaces and crates.

Usage::

    from cargo_scaffold import Pipeline

    Pipeline.with_name("demo").directory("./demo").license(True).build().run()
"""

from cargo_scaffold.config import NetworkConfig, ScaffoldConfig
from cargo_scaffold.pipeline import Pipeline, PipelineBuilder, PipelineResult, PipelineStatus

__version__ = "0.1.0"

__all__ = [
    "NetworkConfig",
    "Pipeline",
    "PipelineBuilder",
    "PipelineResult",
    "PipelineStatus",
    "ScaffoldConfig",
    "__version__",
]
