"""Diagnostic logger for submission events.

Uses the standard ``logging`` module with the ``"classifier_sdk"`` logger.
No ``print()`` statements. Supports three verbosity levels and an
in-memory diagnostic mode for post-hoc analysis.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from classifier_sdk.config import ClassifierConfig
    from classifier_sdk.logging.types import SubmissionRecord

logger = logging.getLogger("classifier_sdk")


class SubmissionLogger:
    """Per-submission diagnostic logger.

    Log levels:
        ``"none"``: No logging output. Records are still stored if
        ``diagnostic_mode=True``.

        ``"summary"``: One line per submission with key metrics (path,
        input count, payload size, timings).

        ``"full"``: Full JSON dump of all record fields.

    Diagnostic mode stores all records in memory for post-hoc analysis via
    ``get_diagnostic_data()`` and ``get_summary_stats()``.
    """

    def __init__(self, config: ClassifierConfig) -> None:
        """Initialize the logger from configuration.

        Args:
            config: Configuration providing ``log_level`` and ``diagnostic_mode``.
        """
        self._log_level = config.log_level
        self._diagnostic_mode = config.diagnostic_mode
        self._records: list[SubmissionRecord] = []

    def log_submission(self, record: SubmissionRecord) -> None:
        """Log a single submission.

        Args:
            record: Immutable record of the submission.
        """
        if self._diagnostic_mode:
            self._records.append(record)

        if self._log_level == "none":
            return

        if self._log_level == "summary":
            logger.info(
                "submit path=%s deployment=%s inputs=%d bytes=%d "
                "prepare=%.2fms write=%.2fms total=%.2fms",
                record.path,
                record.deployment_id,
                record.input_count,
                record.payload_bytes,
                record.preparation_ms,
                record.write_ms,
                record.total_ms,
            )
        elif self._log_level == "full":
            logger.info("submission_record: %s", json.dumps(asdict(record), default=str))

    def get_diagnostic_data(self) -> list[SubmissionRecord]:
        """Return all stored records (requires ``diagnostic_mode=True``)."""
        return list(self._records)

    def get_summary_stats(self) -> dict[str, Any]:
        """Compute summary statistics over all stored records.

        Returns:
            Dictionary with aggregate stats, or empty dict if no records.
        """
        if not self._records:
            return {}

        n = len(self._records)
        total_inputs = sum(r.input_count for r in self._records)
        return {
            "total_submissions": n,
            "total_inputs": total_inputs,
            "stream_submissions": sum(1 for r in self._records if r.path == "stream"),
            "single_submissions": sum(1 for r in self._records if r.path == "single"),
            "mean_inputs": total_inputs / n,
            "total_payload_bytes": sum(r.payload_bytes for r in self._records),
            "mean_preparation_ms": sum(r.preparation_ms for r in self._records) / n,
            "mean_write_ms": sum(r.write_ms for r in self._records) / n,
            "mean_total_ms": sum(r.total_ms for r in self._records) / n,
            "max_total_ms": max(r.total_ms for r in self._records),
        }
