import pytest

from net_monitor import (
    PENDING,
    JsonBody,
    RecordCompletion,
    RecordState,
    RequestRecord,
    RequestType,
)


def _record(url="https://example.com/", method="GET"):
    return RequestRecord(method=method, url=url, type=RequestType.REQUESTS)


def _completion(record, status=200):
    return RecordCompletion(
        record_id=record.id,
        status=status,
        status_text="OK",
        end_time=record.start_time + 5,
        response_headers={"content-type": "application/json"},
        response_body=JsonBody({"ok": True}),
        size=12,
    )


class TestRecordStore:
    def test_add_inserts_most_recent_first(self, store):
        first, second, third = _record("/1"), _record("/2"), _record("/3")
        for record in (first, second, third):
            store.add(record)

        assert [r.url for r in store.records()] == ["/3", "/2", "/1"]
        assert len(store) == 3

    def test_records_returns_snapshot(self, store):
        store.add(_record())
        snapshot = store.records()
        snapshot.clear()
        assert len(store) == 1

    def test_new_record_is_pending(self, store):
        record = _record()
        store.add(record)
        assert record.status == PENDING
        assert record.state is RecordState.PENDING
        assert record.end_time is None
        assert record.duration is None
        assert record.response_body is None

    def test_apply_completes_once(self, store):
        record = _record()
        store.add(record)

        assert store.apply(_completion(record, status=200))
        assert not store.apply(_completion(record, status=500))

        assert record.status == 200
        assert record.state is RecordState.COMPLETED
        assert record.duration == pytest.approx(5)
        assert record.response_body == JsonBody({"ok": True})

    def test_apply_unknown_record_is_dropped(self, store):
        orphan = _record()
        assert not store.apply(_completion(orphan))
        assert orphan.is_pending

    def test_clear_empties_and_deselects(self, store):
        record = _record()
        store.add(record)
        store.select(record.id)
        assert store.selected is record

        store.clear()

        assert store.records() == []
        assert store.selected is None

    def test_clear_on_empty_store(self, store):
        store.clear()
        assert len(store) == 0
        assert store.selected is None

    def test_select_unknown_raises(self, store):
        with pytest.raises(KeyError):
            store.select("missing")

    def test_get(self, store):
        record = _record()
        store.add(record)
        assert store.get(record.id) is record
        assert store.get("missing") is None

    def test_ids_are_unique(self):
        ids = {_record().id for _ in range(200)}
        assert len(ids) == 200


class TestNotifications:
    def test_every_change_notifies(self, store):
        calls = []
        store.subscribe(lambda: calls.append(len(store)))

        record = _record()
        store.add(record)
        store.apply(_completion(record))
        store.clear()

        assert calls == [1, 1, 0]

    def test_failing_listener_does_not_block_others(self, store):
        calls = []

        def broken():
            raise RuntimeError("display crashed")

        store.subscribe(broken)
        store.subscribe(lambda: calls.append("ok"))

        store.add(_record())

        assert calls == ["ok"]
        assert len(store) == 1

    def test_unsubscribe(self, store):
        calls = []
        unsubscribe = store.subscribe(lambda: calls.append(1))
        unsubscribe()
        unsubscribe()

        store.add(_record())
        assert calls == []
