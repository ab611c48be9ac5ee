"""CSV datasets: numeric feature columns followed by one target column."""

from __future__ import annotations

import io
import re
from pathlib import Path

import numpy as np
import pandas as pd

from ..core.errors import ConfigurationError, FormatError
from .dataset import Dataset
from .registry import register_dataset

_ALPHA = re.compile(r"[A-Za-z]")


def _is_header(cells: list[str]) -> bool:
    if not any(_ALPHA.search(cell) for cell in cells):
        return False
    # "1e-3" has a letter but is still a number
    return bool(pd.to_numeric(pd.Series(cells), errors="coerce").isna().any())


def parse_csv(text: str, *, name: str = "csv", source: str | None = None) -> Dataset:
    """Parse CSV ``text`` into a :class:`Dataset`.

    Blank lines are ignored. A first row containing non-numeric alphabetic
    cells is treated as a header and skipped. The first row fixes the column
    count; every other row must match it. The last column is the target.
    """

    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        raise FormatError("CSV document has no rows")

    width = len(lines[0].split(","))
    has_header = _is_header([cell.strip() for cell in lines[0].split(",")])
    rows = lines[1:] if has_header else lines
    if width < 2:
        raise FormatError("CSV rows need at least one feature column and a target column")
    if not rows:
        raise FormatError("CSV document has a header but no data rows")

    first_line = 2 if has_header else 1
    for offset, line in enumerate(rows):
        count = len(line.split(","))
        if count != width:
            raise FormatError(
                f"CSV row {first_line + offset} has {count} columns; expected {width}"
            )

    frame = pd.read_csv(
        io.StringIO("\n".join(rows)),
        header=None,
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
    )
    numeric = frame.apply(lambda column: pd.to_numeric(column.str.strip(), errors="coerce"))
    bad = numeric.isna().to_numpy()
    if bad.any():
        row, col = (int(i) for i in np.argwhere(bad)[0])
        raise FormatError(
            f"CSV row {first_line + row} column {col + 1} is not numeric: "
            f"{frame.iat[row, col]!r}"
        )

    values = numeric.to_numpy(dtype=np.float64)
    return Dataset(
        inputs=values[:, :-1].copy(),
        targets=values[:, -1:].copy(),
        name=name,
        provenance={
            "type": "csv",
            "path": source,
            "rows": int(values.shape[0]),
            "features": int(values.shape[1] - 1),
            "header": has_header,
        },
    )


@register_dataset("csv")
def load_csv(csv_path: str | Path | None = None, **_: object) -> Dataset:
    """Load a CSV dataset from ``csv_path``."""

    if csv_path is None:
        raise ConfigurationError("The csv dataset requires a csv_path option")
    path = Path(csv_path)
    return parse_csv(path.read_text(encoding="utf-8"), name="csv", source=str(path))


__all__ = ["parse_csv", "load_csv"]
