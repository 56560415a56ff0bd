"""Diagnostic logging subsystem for classifier-sdk.

Provides immutable per-submission records and a configurable logger that
supports none/summary/full verbosity and in-memory diagnostic mode.
"""

from classifier_sdk.logging.logger import SubmissionLogger
from classifier_sdk.logging.types import SubmissionRecord

__all__ = [
    "SubmissionLogger",
    "SubmissionRecord",
]
