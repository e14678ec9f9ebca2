import json

from cascade.rows import GoalRow, GoalsState
from cascade.schema import GOALS_TABLE, KPI_TABLE
from cascade.storage import JsonDirBackend, MemoryBackend
from cascade.store import RowStore, decode_state, encode_state


class FailingBackend(MemoryBackend):
    def set(self, key, value):
        raise OSError("quota exceeded")


class UnreadableBackend(MemoryBackend):
    def get(self, key):
        raise OSError("denied")


def test_first_open_seeds_demo_rows(backend):
    store = RowStore.open(KPI_TABLE, backend)
    assert len(store.rows) == 8
    assert store.rows[0].metric_goals == "Чистая прибыль (Холдинг), млн BYN"
    assert KPI_TABLE.storage_key in backend.data


def test_goals_table_seeds_twenty_rows(backend):
    assert len(RowStore.open(GOALS_TABLE, backend).rows) == 20


def test_reopen_keeps_saved_rows_without_reseeding(backend):
    store = RowStore.open(KPI_TABLE, backend)
    for row in store.rows[1:]:
        store.delete_row(row.id)
    reopened = RowStore.open(KPI_TABLE, backend)
    assert [r.id for r in reopened.rows] == [store.rows[0].id]


def test_encode_decode_roundtrip():
    rows = [GoalRow(id="a", last_name="Иванов", q1="24,1"), GoalRow(id="b", goal="Цель")]
    store_state = decode_state(encode_state(GoalsState(rows=rows)))
    assert store_state.rows == rows


def test_encode_keeps_cyrillic_readable(kpi_store):
    assert "Иванов" in encode_state(kpi_store.state)


def test_decode_corrupt_or_wrong_shape_is_empty():
    assert decode_state("{not json").rows == []
    assert decode_state("[1, 2]").rows == []
    assert decode_state("").rows == []
    assert decode_state(None).rows == []
    assert decode_state(json.dumps({"other": 1})).rows == []


def test_decode_legacy_blob_merges_chairman_then_directors():
    raw = json.dumps(
        {
            "chairman": [{"id": "c1", "lastName": "Председатель"}],
            "directors": [{"id": "d1", "lastName": "Директор"}, {"id": "d2"}],
        }
    )
    state = decode_state(raw)
    assert [r.id for r in state.rows] == ["c1", "d1", "d2"]
    assert state.rows[0].last_name == "Председатель"


def test_decode_prefers_rows_over_legacy_keys():
    raw = json.dumps({"rows": [{"id": "x"}], "chairman": [{"id": "c1"}]})
    assert [r.id for r in decode_state(raw).rows] == ["x"]


def test_corrupt_blob_reseeds_on_open():
    backend = MemoryBackend({KPI_TABLE.storage_key: "{broken"})
    assert len(RowStore.open(KPI_TABLE, backend).rows) == 8


def test_unreadable_backend_starts_empty():
    store = RowStore.open(KPI_TABLE, UnreadableBackend(), seed=False)
    assert store.rows == ()


def test_save_failure_keeps_memory_state():
    store = RowStore.open(KPI_TABLE, FailingBackend())
    row = store.add_row()
    assert store.get_row(row.id) == row
    assert len(store.rows) == 9


def test_replace_and_delete(kpi_store):
    target = kpi_store.rows[2]
    assert kpi_store.replace_row(target.with_field("q1", "99"))
    assert kpi_store.get_row(target.id).q1 == "99"
    assert kpi_store.rows.index(kpi_store.get_row(target.id)) == 2

    assert not kpi_store.replace_row(GoalRow(id="missing"))
    assert kpi_store.delete_row(target.id)
    assert not kpi_store.delete_row(target.id)
    assert len(kpi_store.rows) == 7


def test_add_row_appends_blank_row(kpi_store):
    row = kpi_store.add_row()
    assert kpi_store.rows[-1] == row
    assert row.last_name == ""


def test_json_dir_backend_persists_to_disk(tmp_path):
    backend = JsonDirBackend(tmp_path / "data")
    store = RowStore.open(KPI_TABLE, backend)
    path = backend.path_for(KPI_TABLE.storage_key)
    assert path.exists()
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert len(saved["rows"]) == len(store.rows)
    assert RowStore.open(KPI_TABLE, JsonDirBackend(tmp_path / "data")).rows == store.rows
