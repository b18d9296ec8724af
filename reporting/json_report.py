"""
Reporting - JSON Report.

Serializes a pipeline report. Decimals are written as strings so
no precision is lost on the way out.
"""

import json
from typing import IO

from orchestrator.models import PipelineReport


def render_json(report: PipelineReport, indent: int = 4) -> str:
    """Render the full report as a JSON document."""
    return json.dumps(report.to_dict(), indent=indent)


def write_json(report: PipelineReport, stream: IO[str], indent: int = 4) -> None:
    """Write the report to a text stream."""
    stream.write(render_json(report, indent))
    stream.write("\n")
