"""Run-scoped logging for configuration validation and export/import.

Provides a simple logger that writes timestamped entries to a log file.
API keys are never passed to it.
"""

from datetime import datetime, timezone
from pathlib import Path


class RunLogger:
    """Logger that writes to a log file.

    All log entries are timestamped in ISO 8601 format (UTC).
    """

    def __init__(self, log_path: Path) -> None:
        """Initialize the logger.

        Args:
            log_path: Path to the log file. Parent directories are created.
        """
        self._log_path = log_path
        self._log_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def log_path(self) -> Path:
        """Return the path to the log file."""
        return self._log_path

    def _timestamp(self) -> str:
        """Return current UTC timestamp in ISO 8601 format."""
        return datetime.now(timezone.utc).isoformat(timespec="seconds")

    def _write(self, level: str, message: str) -> None:
        timestamp = self._timestamp()
        entry = f"[{timestamp}] [{level}] {message}\n"
        with self._log_path.open("a", encoding="utf-8") as f:
            f.write(entry)

    def info(self, message: str) -> None:
        """Log an INFO level message."""
        self._write("INFO", message)

    def error(self, message: str) -> None:
        """Log an ERROR level message."""
        self._write("ERROR", message)

    def warning(self, message: str) -> None:
        """Log a WARNING level message."""
        self._write("WARNING", message)

    def log_document_errors(self, document: str, errors: list[str]) -> None:
        """Log every error found in one document.

        Args:
            document: Document or category name ("models", "pipeline",
                "cross-reference").
            errors: Error messages in discovery order.
        """
        for error in errors:
            self.error(f"Validation failure in {document}: {error}")

    def log_validation_pass(
        self,
        is_valid: bool,
        error_counts: dict[str, int],
        warning_count: int,
        entry_points: list[str],
    ) -> None:
        """Log the outcome of one validation pass.

        Args:
            is_valid: Whether both documents are valid.
            error_counts: Errors per category.
            warning_count: Number of warnings.
            entry_points: Entry point step ids (empty when invalid).
        """
        status = "valid" if is_valid else "invalid"
        counts = ", ".join(f"{name}={count}" for name, count in error_counts.items())
        self.info(
            f"Validation pass: {status} ({counts}, warnings={warning_count})"
        )
        if entry_points:
            self.info(f"  Entry points: {', '.join(entry_points)}")

    def log_export(self, step_count: int, version: str) -> None:
        """Log a pipeline export.

        Args:
            step_count: Number of exported steps.
            version: Envelope version string.
        """
        self.info(f"Pipeline exported: {step_count} step(s), version {version}")

    def log_import(self, step_count: int, prompt_count: int = 0) -> None:
        """Log an accepted pipeline import.

        Args:
            step_count: Number of imported steps.
            prompt_count: Number of bundled example prompt files.
        """
        self.info(
            f"Pipeline imported: {step_count} step(s), "
            f"{prompt_count} example prompt file(s)"
        )

    def log_folder_plan(self, folders: list[tuple[str, str]]) -> None:
        """Log the entry point folders derived for folder setup.

        Args:
            folders: (step_id, base_path) pairs.
        """
        self.info("Entry point folders:")
        if not folders:
            self.info("  (none)")
        for step_id, base_path in folders:
            self.info(f"  {step_id}: {base_path or '(vault root)'}")
