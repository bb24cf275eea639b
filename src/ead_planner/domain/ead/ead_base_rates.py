# ead_planner/domain/ead/ead_base_rates.py
import csv
from collections.abc import Mapping
from functools import cached_property

import numpy as np

EXPECTED_COLUMNS = 7  # opModeID + six calibration fields
ENERGY_COL = 4  # column of the raw row holding the energy rate, kJ/hr


class BaseRateTableError(ValueError):
    pass


class BaseRateTable:
    """
    Operating mode id -> read-only row of calibration fields (operating mode column removed).
    Only the energy rate is used by the cost model; the other fields are kept as-is.
    """

    def __init__(self, rows: Mapping[int, np.ndarray], source: str = "<memory>"):
        if not rows:
            raise BaseRateTableError(f"base rate table {source} contains no rows")
        self.source = source
        self._rows: dict[int, np.ndarray] = {}
        for mode, row in rows.items():
            arr = np.array(row, dtype=float)
            if arr.shape != (EXPECTED_COLUMNS - 1,):
                raise BaseRateTableError(
                    f"operating mode {mode} has {arr.size + 1} columns, expected {EXPECTED_COLUMNS}"
                )
            arr.setflags(write=False)
            self._rows[int(mode)] = arr

    @classmethod
    def from_csv(cls, path: str) -> "BaseRateTable":
        rows: dict[int, np.ndarray] = {}
        try:
            with open(path, newline="") as f:
                reader = csv.reader(f)
                next(reader, None)  # header
                for lineno, data in enumerate(reader, start=2):
                    if len(data) != EXPECTED_COLUMNS:
                        raise BaseRateTableError(
                            f"{path}:{lineno} contained {len(data)} columns "
                            f"but expected {EXPECTED_COLUMNS}"
                        )
                    try:
                        rows[int(data[0])] = np.array([float(x) for x in data[1:]])
                    except ValueError as e:
                        raise BaseRateTableError(f"{path}:{lineno} is not numeric: {e}") from e
        except OSError as e:
            raise BaseRateTableError(f"cannot read base rate table {path}: {e}") from e
        return cls(rows, source=path)

    def __contains__(self, mode: int) -> bool:
        return mode in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def row(self, mode: int) -> np.ndarray:
        return self._rows[mode]

    def energy_rate(self, mode: int) -> float:
        """kJ/hr for the operating mode. KeyError when the mode is absent."""
        return float(self._rows[mode][ENERGY_COL - 1])

    @cached_property
    def peak_energy_rate(self) -> float:
        return max(float(r[ENERGY_COL - 1]) for r in self._rows.values())

    @property
    def modes(self) -> list[int]:
        return sorted(self._rows)
