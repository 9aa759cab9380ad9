"""CSV rendering for listing exports."""

import csv
import io
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence
from zoneinfo import ZoneInfo

from betaintel.listing.backends import resolve_path
from betaintel.listing.dates import format_local

MISSING_VALUE = "-"


@dataclass(frozen=True)
class Column:
    """One exported column; ``accessor`` is a dotted path into the record."""

    id: str
    header: str
    accessor: str | None = None
    is_datetime: bool = False

    @property
    def path(self) -> str:
        return self.accessor or self.id


def _utm_columns(prefix: str = "") -> list[Column]:
    return [
        Column(f"{prefix}utm_source", "UTM Source"),
        Column(f"{prefix}utm_medium", "UTM Medium"),
        Column(f"{prefix}utm_campaign", "UTM Campaign"),
        Column(f"{prefix}utm_content", "UTM Content"),
        Column(f"{prefix}utm_term", "UTM Term"),
    ]


_ATTRIBUTION_COLUMNS = [
    Column("initial_device_type", "Dispositivo"),
    Column("initial_utm_source", "UTM Source inicial"),
    Column("initial_utm_medium", "UTM Medium inicial"),
    Column("initial_utm_campaign", "UTM Campaign inicial"),
    Column("initial_country", "País"),
    Column("initial_region", "Estado"),
    Column("initial_city", "Cidade"),
]

EXPORT_COLUMNS: dict[str, list[Column]] = {
    "events": [
        Column("event_time", "Data/Hora", is_datetime=True),
        Column("event_name", "Evento"),
        Column("event_type", "Tipo"),
        Column("user.fullname", "Nome"),
        Column("user.email", "E-mail"),
        Column("user.phone", "Telefone"),
        Column("profession.profession_name", "Profissão"),
        Column("product.product_name", "Produto"),
        Column("funnel.funnel_name", "Funil"),
        *_utm_columns(),
        Column("session.country", "País"),
        Column("session.state", "Estado"),
        Column("session.city", "Cidade"),
    ],
    "leads": [
        Column("user_id", "ID"),
        Column("fullname", "Nome"),
        Column("email", "E-mail"),
        Column("phone", "Telefone"),
        Column("is_client", "Cliente"),
        *_ATTRIBUTION_COLUMNS,
        Column("created_at", "Criado em", is_datetime=True),
    ],
    "anonymous": [
        Column("user_id", "ID"),
        *_ATTRIBUTION_COLUMNS,
        Column("created_at", "Criado em", is_datetime=True),
    ],
    "professions": [
        Column("profession_id", "ID"),
        Column("profession_name", "Profissão"),
        Column("meta_pixel", "Meta Pixel"),
        Column("created_at", "Criado em", is_datetime=True),
    ],
    "surveys": [
        Column("survey_name", "Nome da Pesquisa"),
        Column("profession_name", "Profissão"),
        Column("funnel_name", "Funil"),
        Column("total_leads", "Total de Leads"),
        Column("response_rate", "Taxa de Resposta"),
        Column("sales_conversion", "Conversão em Vendas"),
        Column("created_at", "Criado em", is_datetime=True),
    ],
}


def columns_for(resource: str, visible: Sequence[str] | None = None) -> list[Column]:
    """Columns of ``resource``, restricted to and ordered by ``visible`` when given."""
    columns = EXPORT_COLUMNS[resource]
    if not visible:
        return list(columns)
    by_id = {column.id: column for column in columns}
    return [by_id[column_id] for column_id in visible if column_id in by_id]


def batch_size_for(total: int) -> int:
    """Rows rendered between yield points; grows with the export size."""
    if total > 50_000:
        return 5000
    if total > 10_000:
        return 2000
    return 1000


def cell_value(record: Mapping[str, Any], column: Column, tz: ZoneInfo) -> str:
    value = resolve_path(record, column.path)
    if value is None or value == "":
        return MISSING_VALUE
    if isinstance(value, datetime):
        return format_local(value, tz)
    if column.is_datetime and isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
        return format_local(parsed, tz)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _writer(buffer: io.StringIO) -> Any:
    return csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")


def header_line(columns: Sequence[Column]) -> str:
    buffer = io.StringIO()
    _writer(buffer).writerow([column.header for column in columns])
    return buffer.getvalue()


def render_rows(records: Iterable[Mapping[str, Any]], columns: Sequence[Column], tz: ZoneInfo) -> str:
    """Render a batch of records as CSV lines (no header)."""
    buffer = io.StringIO()
    writer = _writer(buffer)
    for record in records:
        writer.writerow([cell_value(record, column, tz) for column in columns])
    return buffer.getvalue()


def render_csv(records: Sequence[Mapping[str, Any]], columns: Sequence[Column], tz: ZoneInfo) -> str:
    return header_line(columns) + render_rows(records, columns, tz)
