import pytest
import requests
from conftest import make_token
from utils.sync_client import LocalUserData, SyncService, SyncStatus

BASE_URL = 'http://bibel.test'
FAVORITE = {'bookId': 43, 'chapter': 3, 'verse': 16, 'addedAt': 1000}


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self._payload


class FlaskHttp:
    """Routes the client's HTTP calls into the Flask test client."""

    def __init__(self, client):
        self.client = client
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append(json)
        response = self.client.post(url[len(BASE_URL):], json=json, headers=headers)
        return FakeResponse(response.status_code, response.get_json())


class Unreachable:
    def post(self, *args, **kwargs):
        raise requests.ConnectionError("Name or service not known")


class Failing:
    def post(self, *args, **kwargs):
        return FakeResponse(500, {'error': 'Sync failed'})


def service(store, http, token=None, **kwargs):
    token = token or make_token(1)
    return SyncService(BASE_URL, store, lambda: token, http=http, **kwargs)


def test_favorite_reaches_other_device_and_delete_follows(client, tmp_path):
    http = FlaskHttp(client)
    phone = LocalUserData(tmp_path / 'phone.json')
    tablet = LocalUserData(tmp_path / 'tablet.json')
    assert phone.device_id != tablet.device_id

    phone.set('favorites', [FAVORITE])
    assert service(phone, http).perform_sync() == 1000

    received = []
    tablet_sync = service(tablet, http, on_data_update=received.append)
    tablet_sync.perform_sync()
    assert tablet.get('favorites') == [FAVORITE]
    assert received == [{'favorites': [FAVORITE]}]
    assert not tablet.tracker.has_pending()

    phone.remove_item('favorites', '43-3-16', deleted_at=2000)
    service(phone, http).perform_sync()
    assert phone.tombstones() == {}

    tablet_sync.perform_sync()
    assert tablet.get('favorites') == []
    assert tablet.last_sync_at == 2000


def test_state_survives_restart(client, tmp_path):
    path = tmp_path / 'device.json'
    store = LocalUserData(path)
    store.set('favorites', [FAVORITE])
    service(store, FlaskHttp(client)).perform_sync()

    reloaded = LocalUserData(path)
    assert reloaded.device_id == store.device_id
    assert reloaded.last_sync_at == 1000
    assert reloaded.get('favorites') == [FAVORITE]


def test_pending_changes_survive_restart(tmp_path):
    path = tmp_path / 'device.json'
    LocalUserData(path).set('notes', [{'id': 'n1', 'text': 'x', 'updatedAt': 5}])
    assert LocalUserData(path).tracker.pending() == {'notes'}


def test_status_sequence_on_success(client):
    statuses = []
    store = LocalUserData()
    store.set('settings', {'fontSize': 18})
    sync = service(store, FlaskHttp(client), on_status=lambda status, error: statuses.append(status))
    sync.perform_sync()
    assert [s.value for s in statuses] == ['syncing', 'idle']


def test_unreachable_server_goes_offline_and_keeps_changes():
    store = LocalUserData()
    store.set('settings', {'fontSize': 18})
    sync = service(store, Unreachable())
    sync.perform_sync()
    assert sync.status == SyncStatus.OFFLINE
    assert store.tracker.pending() == {'settings'}
    assert store.last_sync_at == 0


def test_server_error_backs_off():
    store = LocalUserData()
    store.set('settings', {'fontSize': 18})
    sync = service(store, Failing())
    sync.perform_sync()
    assert sync.status == SyncStatus.ERROR
    assert sync.consecutive_errors == 1
    assert sync.last_error
    assert 2.0 <= sync.retry_delay() <= 2.5
    assert store.tracker.pending() == {'settings'}


def test_rejected_token_is_an_error(client):
    store = LocalUserData()
    sync = service(store, FlaskHttp(client), token=make_token(1, secret='other-secret'))
    sync.perform_sync()
    assert sync.status == SyncStatus.ERROR


def test_no_token_skips_sync():
    http = FlaskHttp(None)
    store = LocalUserData()
    store.last_sync_at = 4000
    sync = SyncService(BASE_URL, store, lambda: None, http=http)
    assert sync.perform_sync() == 4000
    assert http.requests == []
    assert sync.status == SyncStatus.IDLE


def test_not_online_skips_request():
    http = FlaskHttp(None)
    sync = service(LocalUserData(), http, is_online=lambda: False)
    sync.perform_sync()
    assert sync.status == SyncStatus.OFFLINE
    assert http.requests == []


def test_full_sync_sends_every_key(client):
    store = LocalUserData()
    http = FlaskHttp(client)
    service(store, http).perform_sync(full_sync=True)
    body = http.requests[0]
    assert body['fullSync'] is True
    assert body['lastSyncAt'] == 0
    assert {c['dataType'] for c in body['changes']} >= {'settings', 'topics', 'activePlan'}


def test_handle_online(client):
    store = LocalUserData()
    http = FlaskHttp(client)
    sync = service(store, http)
    sync.handle_offline()
    assert sync.status == SyncStatus.OFFLINE

    sync.handle_online()
    assert sync.status == SyncStatus.IDLE
    assert http.requests == []

    store.set('favorites', [FAVORITE])
    sync.handle_online()
    assert len(http.requests) == 1
    assert sync.status == SyncStatus.IDLE


def test_cursor_never_moves_back():
    store = LocalUserData()
    store.last_sync_at = 5000
    store.last_sync_at = 1000
    assert store.last_sync_at == 5000


def test_remove_item_from_singleton_is_rejected():
    store = LocalUserData()
    store.set('settings', {'fontSize': 18})
    with pytest.raises(ValueError):
        store.remove_item('settings', 'fontSize', deleted_at=1)


class Answering:
    def __init__(self, payload):
        self.payload = payload

    def post(self, *args, **kwargs):
        return FakeResponse(200, self.payload)


def test_unsendable_local_data_is_an_error():
    store = LocalUserData()
    store.set('notes', [{'text': 'uten id'}])
    sync = service(store, Unreachable())
    assert sync.perform_sync() == 0
    assert sync.status == SyncStatus.ERROR
    assert sync.consecutive_errors == 1
    assert store.tracker.pending() == {'notes'}


def test_malformed_server_changes_are_an_error():
    store = LocalUserData()
    store.set('favorites', [FAVORITE])
    broken = {'cursor': 9000, 'changes': [{'dataType': 'notes', 'updatedAt': 9000}]}
    sync = service(store, Answering(broken))
    sync.perform_sync()
    assert sync.status == SyncStatus.ERROR
    assert store.tracker.pending() == {'favorites'}
    assert store.last_sync_at == 0
    assert store.get('notes') is None

    # the next attempt is not blocked by the failed one
    healthy = {'cursor': 9000, 'changes': []}
    sync.http = Answering(healthy)
    assert sync.perform_sync() == 9000
    assert sync.status == SyncStatus.IDLE
