"""Per-run directories for downloaded CI logs."""

import zipfile
from pathlib import Path


class RunLogDir:
    """Directory holding the logs of one workflow run.

    Layout: ``<base_dir>/<run_id>/logs.zip`` plus the extracted files.
    """

    ARCHIVE_NAME = "logs.zip"

    def __init__(self, base_dir: Path, run_id: int | str):
        self.run_dir = Path(base_dir) / str(run_id)
        self.archive = self.run_dir / self.ARCHIVE_NAME

    def save(self, content: bytes) -> Path:
        """Write the archive and extract it next to itself.

        Returns:
            The run directory

        Raises:
            zipfile.BadZipFile: If the content is not a zip archive
                (the archive itself is still kept for inspection)
        """
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self.archive.write_bytes(content)
        with zipfile.ZipFile(self.archive) as archive:
            archive.extractall(self.run_dir)
        return self.run_dir

    def files(self) -> list[Path]:
        """Extracted log files, sorted, without the archive."""
        if not self.run_dir.is_dir():
            return []
        return sorted(
            p for p in self.run_dir.rglob("*")
            if p.is_file() and p != self.archive
        )
