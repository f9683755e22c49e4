"""Load daily status observations from JSON, JSONL or CSV exports."""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd

from report_reconciler.errors import ObservationError
from report_reconciler.models import DailyObservation

OBSERVATION_FORMATS = {".json", ".jsonl", ".csv"}


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str, keep_default_na=False)
    if suffix == ".jsonl":
        records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
        return pd.DataFrame(records, dtype=object)
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("observations", payload.get("dailies"))
    if not isinstance(payload, list):
        raise ObservationError("JSON observations must be a list or an object with an 'observations' list")
    return pd.DataFrame(payload, dtype=object)


def observations_from_frame(
    df: pd.DataFrame,
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    sort_by_date: bool = True,
) -> list[DailyObservation]:
    if df.empty:
        return []
    if "date" not in df.columns:
        raise ObservationError("Observation data has no 'date' column")
    df = df.astype(object).where(pd.notna(df), None)
    df["date"] = df["date"].map(lambda value: "" if value is None else str(value).strip())
    if start_date:
        df = df[df["date"] >= start_date]
    if end_date:
        df = df[df["date"] <= end_date]
    if sort_by_date:
        df = df.sort_values("date", kind="stable")
    observations = []
    for index, record in enumerate(df.to_dict(orient="records"), start=1):
        try:
            observations.append(DailyObservation.from_dict(record))
        except ValueError as exc:
            raise ObservationError(f"Observation {index}: {exc}") from exc
    return observations


def load_observations(
    path: Path | str,
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    sort_by_date: bool = True,
) -> list[DailyObservation]:
    """Read observations, optionally keeping only an inclusive date range.

    Dates are compared as ``YYYY-MM-DD`` strings. Sorting is stable, so
    several entries for the same day keep their file order.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if path.suffix.lower() not in OBSERVATION_FORMATS:
        raise ObservationError(
            f"Unsupported observation format '{path.suffix}'. Supported: {', '.join(sorted(OBSERVATION_FORMATS))}"
        )
    try:
        df = _read_frame(path)
    except ValueError as exc:
        raise ObservationError(f"Could not read observations: {exc}") from exc
    return observations_from_frame(df, start_date=start_date, end_date=end_date, sort_by_date=sort_by_date)
