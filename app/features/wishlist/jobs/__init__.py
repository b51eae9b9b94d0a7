"""
Background jobs for the wishlist feature.
"""

from .match_processing_job import (
    MatchProcessingJob,
    match_processing_job,
    run_match_processing_once,
    run_match_processing_worker,
    start_match_processing_scheduler,
)

__all__ = [
    "MatchProcessingJob",
    "match_processing_job",
    "run_match_processing_once",
    "run_match_processing_worker",
    "start_match_processing_scheduler",
]
