from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Sequence

from django.http import HttpResponse
from django.utils import timezone


def csv_cell(value: Any) -> str:
    """Plain CSV cell: None is blank, commas become semicolons, no quoting."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    text = " ".join(str(value).splitlines())
    return text.replace(",", ";")


def join_csv_rows(rows: Iterable[Sequence[Any]]) -> str:
    return "\n".join(",".join(csv_cell(v) for v in row) for row in rows) + "\n"


def build_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Header row plus one line per record."""
    return join_csv_rows([headers, *rows])


def csv_response(content: str, filename: str) -> HttpResponse:
    response = HttpResponse(content, content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response
