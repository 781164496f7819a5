"""
GitHub Actions Outputs
======================

Exposes the run's decision as step outputs so a workflow can branch on
`steps.<id>.outputs.alert` (e.g. to send an email).

Two protocols:
- Output file (current): append `name=value` lines to the file named by
  $GITHUB_OUTPUT. Multi-line values use the `name<<DELIMITER` form.
- `::set-output name=K::V` on stdout (deprecated by GitHub, used only when
  no output file is configured).
"""

import logging
import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Sequence, TextIO

from ..models import Alert
from .base import AlertSink, build_outputs, ordered

logger = logging.getLogger(__name__)


def _escape_legacy(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def format_output_lines(outputs: Dict[str, str]) -> str:
    """Render outputs in the $GITHUB_OUTPUT file format."""
    lines = []
    for name, value in outputs.items():
        if "\n" in value or "\r" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
            lines.append(f"{name}<<{delimiter}")
            lines.append(value)
            lines.append(delimiter)
        else:
            lines.append(f"{name}={value}")
    return "\n".join(lines) + "\n"


class GitHubOutputSink(AlertSink):
    """Writes alert, message, timestamp and categories outputs."""

    def __init__(self, output_file: Optional[Path] = None, stream: Optional[TextIO] = None):
        """
        Args:
            output_file: $GITHUB_OUTPUT path; None selects the legacy stdout protocol
            stream: Stream for the legacy protocol (default sys.stdout)
        """
        self.output_file = Path(output_file) if output_file else None
        self.stream = stream

    def _write_legacy(self, outputs: Dict[str, str]):
        stream = self.stream or sys.stdout
        for name, value in outputs.items():
            stream.write(f"::set-output name={name}::{_escape_legacy(value)}\n")
        stream.flush()

    def publish(self, alerts: Sequence[Alert], timestamp: datetime):
        for alert in ordered(alerts):
            logger.warning(f"ALERT TRIGGERED ({alert.category.value}): {alert.message}")

        outputs = build_outputs(alerts, timestamp)

        if self.output_file is None:
            logger.debug("No output file configured, using ::set-output")
            self._write_legacy(outputs)
            return

        try:
            with open(self.output_file, "a", encoding="utf-8") as f:
                f.write(format_output_lines(outputs))
        except OSError as e:
            logger.error(f"Failed to write outputs to {self.output_file}: {e}")
            self._write_legacy(outputs)
            return

        logger.info(f"Outputs written to {self.output_file} (alert={outputs['alert']})")
