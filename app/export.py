"""CSV projection of the forecast history."""
from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Sequence

from app.domain import HistoryEntry
from app.errors import ExportRefused
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/export")

CSV_HEADERS = ("Data", "Previsão", "Clima", "Temperatura", "Timestamp")
DEFAULT_FILENAME_PREFIX = "bike_predictions"


def format_number(value: float) -> str:
    """
    Render a number the way a browser prints it: ``20`` not ``20.0``, positional
    notation between 1e-6 and 1e21, otherwise ``1e-7`` style exponents.
    """
    value = float(value)
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" not in text:
        return text
    if 1e-6 <= abs(value) < 1e21:
        return format(Decimal(text), "f")
    mantissa, exponent = text.split("e")
    sign = "-" if exponent.startswith("-") else "+"
    return f"{mantissa}e{sign}{int(exponent.lstrip('+-'))}"


def format_instant(moment: datetime) -> str:
    """UTC instant with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _row(entry: HistoryEntry) -> list[str]:
    return [
        entry.date,
        str(entry.prediction),
        entry.weather,
        f"{format_number(entry.temperature)}°C",
        format_instant(entry.timestamp),
    ]


def export_csv(entries: Sequence[HistoryEntry]) -> str:
    """
    Serialize ledger entries (in the order given) to comma-separated text.

    Fields are joined verbatim without quoting. Raises ``ExportRefused`` when
    there is nothing to export.
    """
    if not entries:
        raise ExportRefused("No history to export.")
    rows = [list(CSV_HEADERS)] + [_row(entry) for entry in entries]
    logger.info("Exporting history", extra={"rows": len(entries)})
    return "\n".join(",".join(row) for row in rows)


def export_filename(today: date | None = None, prefix: str = DEFAULT_FILENAME_PREFIX) -> str:
    """Download name for an export, e.g. ``bike_predictions_2025-06-01.csv``."""
    today = today or datetime.now(timezone.utc).date()
    return f"{prefix}_{today.isoformat()}.csv"
