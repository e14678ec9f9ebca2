import math

import pytest

from cascade.dashboard import EMPTY_MESSAGE, compute_dashboard
from cascade.data import parse_number, parse_weight_pct, weight_label
from cascade.metrics_groups import top_goals, top_owners
from cascade.metrics_overview import compute_completeness, compute_summary
from cascade.metrics_quarters import compute_quarter_heatmap, compute_quarter_series
from cascade.metrics_weights import DONUT_RADIUS, compute_weight_distribution, donut_segments, weight_entries
from cascade.rows import GoalRow
from cascade.schema import KPI_TABLE
from cascade.store import RowStore


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("24,1", 24.1),
        ("20%", 20.0),
        (" 1 234,5 ", 1234.5),
        ("-0.3%", -0.3),
        ("NPS 48", None),
        ("М", None),
        ("", None),
        ("1,2,3", None),
        ("inf", None),
    ],
)
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


def test_parse_weight_pct_bounds():
    assert parse_weight_pct("100%") == 100.0
    assert parse_weight_pct("0") == 0.0
    assert parse_weight_pct("101") is None
    assert parse_weight_pct("-5") is None


def test_weight_label_fallbacks():
    assert weight_label(GoalRow(metric_goals=" CIR ", goal="Цель")) == "CIR"
    assert weight_label(GoalRow(goal="Цель")) == "Цель"
    assert weight_label(GoalRow()) == "—"


def test_weight_entries_skip_markers_and_blanks():
    rows = [
        GoalRow(metric_goals="A", weight_year="20%"),
        GoalRow(metric_goals="B", weight_year="15%"),
        GoalRow(metric_goals="C", weight_year="М"),
        GoalRow(metric_goals="D", weight_year=""),
        GoalRow(metric_goals="E", weight_year="0"),
    ]
    dist = compute_weight_distribution(rows)
    assert [(e["label"], e["pct"]) for e in dist["entries"]] == [("A", 20.0), ("B", 15.0)]
    assert dist["total"] == 35.0
    assert [b["bar_pct"] for b in dist["bars"]] == [100.0, 75.0]


def test_donut_arcs_cover_the_circle():
    entries = [("A", 20.0), ("B", 15.0), ("C", 5.0)]
    segments = donut_segments(entries)
    circumference = 2 * math.pi * DONUT_RADIUS
    assert math.isclose(sum(s["length"] for s in segments), circumference)
    assert segments[0]["offset"] == 0.0
    assert math.isclose(segments[2]["offset"], segments[0]["length"] + segments[1]["length"])
    assert segments[0]["color"] != segments[1]["color"]


def test_donut_custom_arc():
    segments = donut_segments([("A", 1.0), ("B", 3.0)], total_arc=100.0)
    assert [s["length"] for s in segments] == [25.0, 75.0]


def test_weights_on_demo_kpi_rows(backend):
    rows = RowStore.open(KPI_TABLE, backend).rows
    assert len(weight_entries(rows)) == 5
    assert compute_weight_distribution(rows)["total"] == 70.0


def test_empty_inputs_produce_empty_blocks():
    dist = compute_weight_distribution([])
    assert dist["entries"] == [] and dist["segments"] == [] and dist["charts"] == {}
    assert top_owners([]) == []
    assert top_goals([]) == []
    assert compute_quarter_series([]) is None
    assert compute_quarter_heatmap([]) == []
    assert compute_completeness([]) == []


def test_top_owners_and_goals_ordered_by_count_then_first_seen():
    rows = [
        GoalRow(last_name="Б", goal="X", weight_year="10"),
        GoalRow(last_name="А", goal="Y", weight_year="М"),
        GoalRow(last_name="А", goal="Y", weight_year="5"),
        GoalRow(last_name="Б", goal="X", weight_year="20"),
        GoalRow(last_name="В", goal=""),
    ]
    assert top_owners(rows) == [
        {"owner": "Б", "count": 2},
        {"owner": "А", "count": 2},
        {"owner": "В", "count": 1},
    ]
    assert top_goals(rows) == [
        {"goal": "X", "count": 2, "weight": 30.0},
        {"goal": "Y", "count": 2, "weight": 5.0},
    ]


def test_quarter_series_uses_first_numeric_row():
    rows = [
        GoalRow(id="a", q1="NPS 48"),
        GoalRow(id="b", metric_goals="CIR", q1="50%", q2="", q3="25%", q4="x"),
    ]
    series = compute_quarter_series(rows)
    assert series["row_id"] == "b"
    assert series["label"] == "CIR"
    assert [p["value"] for p in series["points"]] == [50.0, None, 25.0, None]
    assert [p["scaled"] for p in series["points"]] == [100.0, None, 50.0, None]


def test_quarter_heatmap_flags_and_limit():
    rows = [GoalRow(id=str(i), q1="x" if i % 2 else "") for i in range(15)]
    heat = compute_quarter_heatmap(rows)
    assert len(heat) == 12
    assert heat[1]["filled"] == [True, False, False, False]


def test_summary_counts():
    rows = [
        GoalRow(last_name="Иванов", year="2026", weight_year="20%"),
        GoalRow(last_name="Иванов ", weight_year="М"),
        GoalRow(),
    ]
    assert compute_summary(rows) == {"total_rows": 3, "owners": 1, "with_year": 1, "with_weight": 1}


def test_dashboard_payload(backend):
    rows = RowStore.open(KPI_TABLE, backend).rows
    payload = compute_dashboard(rows, KPI_TABLE)
    assert payload["empty"] is False
    assert payload["summary"]["total_rows"] == 8
    assert {"weights_bar", "weights_donut"} <= set(payload["weights"]["charts"])
    assert "completeness" in payload["charts"]
    assert payload["quarters"]["series"]["label"] == "Чистая прибыль (Холдинг), млн BYN"


def test_dashboard_empty_snapshot():
    payload = compute_dashboard([], KPI_TABLE)
    assert payload["empty"] is True
    assert payload["empty_message"] == EMPTY_MESSAGE
    assert payload["completeness"] == []
