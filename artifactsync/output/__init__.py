"""Run output — JSON formatters and the Rich summary renderer."""

from artifactsync.output.formatters import (
    format_artifacts,
    format_cids,
    write_action_outputs,
)
from artifactsync.output.renderer import SummaryRenderer

__all__ = [
    "format_artifacts",
    "format_cids",
    "write_action_outputs",
    "SummaryRenderer",
]
