"""Domain models for the HAI titer analysis.

This package holds the cleaned-record layout, the run result and the
error record written to the JSON Lines error log.
"""

from .analysis_result import AnalysisResult, TrendFit
from .error_record import ErrorRecord
from .titer_record import TiterRecord, records_from_frame

__all__ = [
    "AnalysisResult",
    "TrendFit",
    "ErrorRecord",
    "TiterRecord",
    "records_from_frame",
]
