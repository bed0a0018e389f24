"""Report sinks — the JSON artifact on disk and the GitHub Actions output."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from package_stats.domain.entities import OutputMode
from package_stats.domain.exceptions import ReportWriteError

logger = logging.getLogger(__name__)


class JsonReportWriter:
    """Writes the rendered report to ``<output_dir>/<mode filename>``."""

    def __init__(self, output_dir: Path | str = "output") -> None:
        self._output_dir = Path(output_dir)

    def write(self, content: str, mode: OutputMode) -> Path:
        """Write *content* for *mode* and return the file path."""
        logger.info("Current execution directory: %s", Path.cwd())
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ReportWriteError(
                f"Error creating output directory {self._output_dir}: {exc}"
            ) from exc
        logger.info("Created or verified output directory at: %s", self._output_dir)

        output_path = self._output_dir / OutputMode(mode).filename
        try:
            output_path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ReportWriteError(f"Error writing {output_path}: {exc}") from exc
        logger.info("Results written to %s", output_path)
        return output_path


class ActionOutput:
    """Sets step outputs through the file named by ``GITHUB_OUTPUT``.

    Outside of GitHub Actions (no output file configured) values are only
    logged.
    """

    def __init__(self, output_file: Path | str | None = None) -> None:
        self._output_file = Path(output_file) if output_file else None

    def set(self, name: str, value: str) -> None:
        if self._output_file is None:
            logger.debug("GITHUB_OUTPUT not set; skipping output %s", name)
            return

        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        try:
            with self._output_file.open("a", encoding="utf-8") as fh:
                fh.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
        except OSError as exc:
            raise ReportWriteError(f"Error setting output {name}: {exc}") from exc
