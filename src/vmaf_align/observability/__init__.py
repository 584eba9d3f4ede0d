"""
Observability Module
====================

Progress logging and run reports.

    - ProgressReporter: rate-limited progress lines
    - PipelineReport: end-of-run summary
"""

from vmaf_align.observability.progress import PipelineReport, ProgressReporter


__all__ = [
    "PipelineReport",
    "ProgressReporter",
]
