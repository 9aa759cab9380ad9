"""CSV rendering."""

import csv
import io
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from betaintel.listing.csv_export import (
    Column,
    batch_size_for,
    cell_value,
    columns_for,
    render_csv,
)

SAO_PAULO = ZoneInfo("America/Sao_Paulo")


def test_missing_values_render_as_dash():
    record = {"user": None, "event_name": ""}
    assert cell_value(record, Column("user.fullname", "Nome"), SAO_PAULO) == "-"
    assert cell_value(record, Column("event_name", "Evento"), SAO_PAULO) == "-"
    assert cell_value(record, Column("absent", "X"), SAO_PAULO) == "-"


def test_datetimes_render_in_display_timezone():
    column = Column("event_time", "Data/Hora", is_datetime=True)
    instant = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert cell_value({"event_time": instant}, column, SAO_PAULO) == "01/03/2024 09:00:00"
    assert cell_value({"event_time": "2024-03-01T12:00:00Z"}, column, SAO_PAULO) == "01/03/2024 09:00:00"


def test_nested_paths_and_scalars():
    record = {"user": {"fullname": "Ana"}, "is_client": True, "total_leads": 40}
    assert cell_value(record, Column("user.fullname", "Nome"), SAO_PAULO) == "Ana"
    assert cell_value(record, Column("is_client", "Cliente"), SAO_PAULO) == "true"
    assert cell_value(record, Column("total_leads", "Total"), SAO_PAULO) == "40"


def test_every_cell_is_quoted_and_escaped():
    columns = [Column("name", "Nome"), Column("note", "Nota")]
    output = render_csv([{"name": 'Ana "A"', "note": "a,b"}], columns, SAO_PAULO)
    lines = output.splitlines()
    assert lines[0] == '"Nome","Nota"'
    assert lines[1] == '"Ana ""A""","a,b"'
    assert list(csv.reader(io.StringIO(output)))[1] == ['Ana "A"', "a,b"]


def test_visible_columns_select_and_order():
    columns = columns_for("events", ["event_name", "event_time", "nope"])
    assert [c.id for c in columns] == ["event_name", "event_time"]
    assert [c.id for c in columns_for("professions")][:2] == ["profession_id", "profession_name"]


@pytest.mark.parametrize("total,expected", [(10, 1000), (10_000, 1000), (10_001, 2000), (50_001, 5000)])
def test_batch_size_scales_with_total(total, expected):
    assert batch_size_for(total) == expected
