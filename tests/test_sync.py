import pytest
from database import get_db_session
from models import SyncItem
from schemas.sync_schemas import SyncChange
from utils.sync import SyncReconciler


def change(item_id, updated_at, payload=None, deleted=False, data_type='favorites'):
    return SyncChange(
        data_type=data_type,
        item_id=item_id,
        payload=payload,
        updated_at=updated_at,
        deleted=deleted
    )


def exchange(user_id, device_id, cursor=0, changes=(), full=False):
    with get_db_session() as db:
        return SyncReconciler(db).exchange(user_id, device_id, cursor=cursor, changes=changes, full=full).to_json()


def stored(user_id, data_type, item_id):
    with get_db_session() as db:
        item = db.get(SyncItem, (user_id, data_type, item_id))
        return item.to_json() if item else None


def test_first_push_stores_records():
    result = exchange(1, 'phone', changes=[change('43-3-16', 1000, {'bookId': 43})])
    assert result['cursor'] == 1000
    assert result['changes'] == []
    assert stored(1, 'favorites', '43-3-16')['payload'] == {'bookId': 43}


def test_resending_a_batch_is_a_no_op():
    batch = [change('a', 1000, {'v': 1}), change('b', 1200, {'v': 2})]
    first = exchange(1, 'phone', changes=batch)
    second = exchange(1, 'phone', cursor=first['cursor'], changes=batch)
    assert second == first
    assert stored(1, 'favorites', 'a')['payload'] == {'v': 1}


def test_two_devices_converge():
    exchange(1, 'phone', changes=[change('n1', 1000, {'text': 'phone'}, data_type='notes')])
    exchange(1, 'tablet', changes=[change('n1', 2000, {'text': 'tablet'}, data_type='notes')])

    phone = exchange(1, 'phone', cursor=1000)
    assert [c['payload'] for c in phone['changes']] == [{'text': 'tablet'}]
    assert phone['cursor'] == 2000
    assert stored(1, 'notes', 'n1')['payload'] == {'text': 'tablet'}


def test_older_write_is_rejected_and_server_copy_returned():
    exchange(1, 'tablet', changes=[change('n1', 2000, {'text': 'new'}, data_type='notes')])
    result = exchange(1, 'phone', changes=[change('n1', 1500, {'text': 'stale'}, data_type='notes')])
    assert [c['payload'] for c in result['changes']] == [{'text': 'new'}]
    assert stored(1, 'notes', 'n1')['updatedAt'] == 2000


def test_delete_after_edit_is_hidden_from_full_sync():
    exchange(1, 'phone', changes=[change('a', 1000, {'v': 1})])
    exchange(1, 'tablet', changes=[change('a', 2000, deleted=True)])

    full = exchange(1, 'laptop', full=True)
    assert full['changes'] == []

    incremental = exchange(1, 'phone', cursor=1000)
    assert incremental['changes'][0]['deleted'] is True
    assert incremental['changes'][0]['payload'] is None


def test_earlier_delete_does_not_beat_later_update():
    exchange(1, 'phone', changes=[change('a', 3000, {'v': 'kept'})])
    exchange(1, 'tablet', changes=[change('a', 2000, deleted=True)])
    item = stored(1, 'favorites', 'a')
    assert item['deleted'] is False
    assert item['payload'] == {'v': 'kept'}


def test_out_of_order_batch_keeps_newest():
    batch = [change('a', 3000, {'v': 3}), change('a', 1000, {'v': 1}), change('a', 2000, {'v': 2})]
    result = exchange(1, 'phone', changes=batch)
    assert stored(1, 'favorites', 'a')['payload'] == {'v': 3}
    assert result['cursor'] == 3000


def test_equal_timestamp_keeps_stored_record():
    exchange(1, 'phone', changes=[change('a', 1000, {'v': 'first'})])
    result = exchange(1, 'tablet', changes=[change('a', 1000, {'v': 'second'})])
    assert stored(1, 'favorites', 'a')['payload'] == {'v': 'first'}
    # the device is told which version won
    assert [c['payload'] for c in result['changes']] == [{'v': 'first'}]


def test_cursor_never_regresses():
    exchange(1, 'phone', changes=[change('a', 5000, {'v': 1})])
    result = exchange(1, 'phone', cursor=100)
    assert result['cursor'] == 5000
    with get_db_session() as db:
        assert SyncReconciler(db).get_cursor(1, 'phone') == 5000


def test_incremental_pull_only_returns_newer_records():
    exchange(1, 'tablet', changes=[change('a', 1000, {'v': 1}), change('b', 3000, {'v': 2})])
    with get_db_session() as db:
        result = SyncReconciler(db).pull(1, 'phone', cursor=2000)
        ids = [item.item_id for item in result.changes]
        cursor = result.cursor
    assert ids == ['b']
    assert cursor == 3000


def test_full_pull_ignores_cursor():
    exchange(1, 'tablet', changes=[change('a', 1000, {'v': 1}), change('b', 3000, {'v': 2})])
    with get_db_session() as db:
        result = SyncReconciler(db).pull(1, 'phone', cursor=9999, full=True)
        ids = sorted(item.item_id for item in result.changes)
    assert ids == ['a', 'b']


def test_users_are_isolated():
    exchange(1, 'phone', changes=[change('a', 1000, {'owner': 1})])
    result = exchange(2, 'phone', full=True)
    assert result['changes'] == []
    assert stored(2, 'favorites', 'a') is None


def test_purge_tombstones():
    exchange(1, 'phone', changes=[
        change('old', 1000, deleted=True),
        change('recent', 5000, deleted=True),
        change('live', 1000, {'v': 1}),
    ])
    with get_db_session() as db:
        assert SyncReconciler(db).purge_tombstones(1, older_than=2000) == 1
    assert stored(1, 'favorites', 'old') is None
    assert stored(1, 'favorites', 'recent')['deleted'] is True
    assert stored(1, 'favorites', 'live') is not None


def test_failed_session_leaves_no_partial_state():
    with pytest.raises(RuntimeError):
        with get_db_session() as db:
            SyncReconciler(db).exchange(1, 'phone', changes=[change('a', 1000, {'v': 1})])
            raise RuntimeError("connection dropped")

    assert stored(1, 'favorites', 'a') is None
    with get_db_session() as db:
        assert SyncReconciler(db).get_cursor(1, 'phone') == 0
