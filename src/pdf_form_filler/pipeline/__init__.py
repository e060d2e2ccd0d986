# SPDX-License-Identifier: Apache-2.0
"""Form filling pipeline package.

The pipeline driver is loaded on first access, since core modules import
``pipeline.errors`` while the driver imports the core modules.
"""

from typing import Any

from .errors import MalformedDocumentError, PipelineError, RasterizationError
from .progress import ProgressCallback

_DRIVER_EXPORTS = frozenset(
    {
        "FillPipeline",
        "FillResult",
        "PipelineConfig",
        "evaluate_completeness",
    }
)

__all__ = [
    "FillPipeline",
    "FillResult",
    "MalformedDocumentError",
    "PipelineConfig",
    "PipelineError",
    "ProgressCallback",
    "RasterizationError",
    "evaluate_completeness",
]


def __getattr__(name: str) -> Any:
    if name in _DRIVER_EXPORTS:
        from . import fill_pipeline

        return getattr(fill_pipeline, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
