from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line body for a finished import; log_summary adds the label."""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for tiny values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line body.

    Format:
    collection={id} rows={submitted} persisted={n} failed={n}
    nulled_refs={n} elapsed_sec={s} throughput_rps={r}

    >>> from datetime import datetime, timezone
    >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    >>> r = ImportResult(collection_id=7, imported_count=3, persisted_count=3,
    ...     start_time=t, end_time=t, elapsed_seconds=0.5, throughput_rows_per_sec=6.0)
    >>> render_summary_line(r)
    'collection=7 rows=3 persisted=3 failed=0 nulled_refs=0 elapsed_sec=0.5 throughput_rps=6'
    """
    return (
        f"collection={result.collection_id} "
        f"rows={result.imported_count} "
        f"persisted={result.persisted_count} "
        f"failed={len(result.failed_rows)} "
        f"nulled_refs={len(result.nulled_references)} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )
