"""CSV sink for per-step spatial averages."""

import csv
from dataclasses import astuple, dataclass
from pathlib import Path
from typing import Optional, TextIO

CSV_HEADER = (
    "time(s)",
    "avg_photon_density",
    "avg_axion_density",
    "avg_neutrino_density",
    "avg_energy_density",
)


class OutputSinkError(OSError):
    """The results file could not be created or appended to."""


@dataclass(frozen=True)
class AverageRecord:
    time: float
    avg_photon_density: float
    avg_axion_density: float
    avg_neutrino_density: float
    avg_energy_density: float

    def as_row(self) -> tuple[float, float, float, float, float]:
        return astuple(self)


class CsvRecordWriter:
    """Write AverageRecords to CSV, header first, one row per step.

    The file is truncated on open. Floats use repr, the shortest string that
    round-trips.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._file: Optional[TextIO] = None
        self._writer = None

    def open(self) -> "CsvRecordWriter":
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "w", encoding="utf-8", newline="")
            self._writer = csv.writer(self._file, lineterminator="\n")
            self._writer.writerow(CSV_HEADER)
        except OSError as exc:
            self.close()
            raise OutputSinkError(f"cannot create {self.path}: {exc}") from exc
        return self

    def write(self, record: AverageRecord) -> None:
        if self._writer is None:
            raise OutputSinkError(f"{self.path} is not open")
        try:
            self._writer.writerow([repr(float(v)) for v in record.as_row()])
        except OSError as exc:
            raise OutputSinkError(f"cannot append to {self.path}: {exc}") from exc

    def close(self) -> None:
        f, self._file, self._writer = self._file, None, None
        if f is None:
            return
        try:
            f.close()
        except OSError as exc:
            raise OutputSinkError(f"cannot flush {self.path}: {exc}") from exc

    def __enter__(self) -> "CsvRecordWriter":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()
