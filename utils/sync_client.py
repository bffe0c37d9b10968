# utils/sync_client.py
"""Device side of sync: local-first user data reconciled against /api/sync.

A sync session moves ``idle -> syncing -> idle | error | offline``. The local
cursor and the set of pending changes only move forward after the server's
answer has been written locally, so an aborted attempt can simply be retried.
"""
import copy
import json
import logging
import os
import random
import uuid
from enum import Enum
from pathlib import Path

import requests

from utils.change_tracker import (
    STORAGE_KEYS, ChangeTracker, build_sync_changes, apply_server_changes, favorite_id
)

logger = logging.getLogger(__name__)

BASE_RETRY_DELAY = 1.0  # seconds
MAX_RETRY_DELAY = 60.0


class SyncStatus(str, Enum):
    IDLE = 'idle'
    SYNCING = 'syncing'
    ERROR = 'error'
    OFFLINE = 'offline'


class LocalUserData:
    """User data kept on the device, persisted as a single JSON file."""

    def __init__(self, path=None):
        self.path = Path(path) if path else None
        state = {}
        if self.path and self.path.exists():
            state = json.loads(self.path.read_text(encoding='utf-8'))

        self._data = state.get('data', {})
        self._tombstones = state.get('tombstones', {})
        self._last_sync_at = int(state.get('lastSyncAt', 0))
        self.tracker = ChangeTracker(state.get('pending', []))
        self._device_id = state.get('deviceId')
        if not self._device_id:
            self._device_id = str(uuid.uuid4())
            self.save()

    @property
    def device_id(self):
        return self._device_id

    @property
    def last_sync_at(self):
        return self._last_sync_at

    @last_sync_at.setter
    def last_sync_at(self, value):
        # Never move the cursor backwards
        self._last_sync_at = max(self._last_sync_at, int(value))
        self.save()

    def get(self, key, default=None):
        return copy.deepcopy(self._data.get(key, default))

    def all_data(self):
        return copy.deepcopy(self._data)

    def set(self, key, value):
        if key not in STORAGE_KEYS:
            raise ValueError(f"Unknown storage key: {key}")
        self._data[key] = value
        self.tracker.mark_changed(key)
        self.save()

    def remove_item(self, key, item_id, deleted_at):
        """Delete one item of a list/dict key and remember the delete for the next sync."""
        item_id = str(item_id)
        current = self._data.get(key)
        if key == 'planProgress':
            (current or {}).pop(item_id, None)
        elif key == 'favorites':
            self._data[key] = [f for f in current or [] if favorite_id(f) != item_id]
        elif isinstance(current, list):
            self._data[key] = [e for e in current if str(e.get('id')) != item_id]
        else:
            raise ValueError(f"{key} has no removable items")

        self._tombstones.setdefault(key, {})[item_id] = int(deleted_at)
        self.tracker.mark_changed(key)
        self.save()

    def tombstones(self):
        return copy.deepcopy(self._tombstones)

    def clear_tombstones(self, sent):
        """Forget deletes the server has acknowledged (unless deleted again since)."""
        for key, items in sent.items():
            current = self._tombstones.get(key, {})
            for item_id, deleted_at in items.items():
                if current.get(item_id) == deleted_at:
                    del current[item_id]
            if not current:
                self._tombstones.pop(key, None)
        self.save()

    def apply_updates(self, updates):
        """Store values that came from the server without marking them as local changes."""
        self._data.update(updates)
        self.save()

    def save(self):
        if not self.path:
            return
        state = {
            'deviceId': self._device_id,
            'lastSyncAt': self._last_sync_at,
            'pending': sorted(self.tracker.pending()),
            'tombstones': self._tombstones,
            'data': self._data,
        }
        tmp = self.path.with_suffix(self.path.suffix + '.tmp')
        tmp.write_text(json.dumps(state, ensure_ascii=False), encoding='utf-8')
        os.replace(tmp, self.path)


class SyncService:
    """Runs sync sessions against the server for one device."""

    def __init__(self, base_url, store, token_provider, on_status=None, on_data_update=None,
                 is_online=None, http=None, timeout=30):
        self.base_url = base_url.rstrip('/')
        self.store = store
        self.token_provider = token_provider
        self.on_status = on_status
        self.on_data_update = on_data_update
        self.is_online = is_online or (lambda: True)
        self.http = http or requests.Session()
        self.timeout = timeout

        self.status = SyncStatus.IDLE
        self.last_error = None
        self.consecutive_errors = 0
        self._syncing = False

    def _set_status(self, status, error=None):
        self.status = status
        self.last_error = error
        if self.on_status:
            self.on_status(status, error)

    def retry_delay(self):
        """Seconds to wait before retrying: exponential backoff plus up to 25% jitter."""
        delay = min(BASE_RETRY_DELAY * (2 ** self.consecutive_errors), MAX_RETRY_DELAY)
        return delay + random.random() * delay * 0.25

    def _post(self, body, token):
        response = self.http.post(
            f"{self.base_url}/api/sync",
            json=body,
            headers={'Authorization': f'Bearer {token}'},
            timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def _fail(self, pending, error):
        self.store.tracker.restore(pending)
        self.consecutive_errors += 1
        logger.error(f"Sync failed (attempt {self.consecutive_errors}): {error}")
        self._set_status(SyncStatus.ERROR, str(error))
        return self.store.last_sync_at

    def perform_sync(self, full_sync=False):
        """Run one sync session. Returns the cursor the device ends up with."""
        if self._syncing:
            return self.store.last_sync_at

        token = self.token_provider()
        if not token:
            return self.store.last_sync_at

        if not self.is_online():
            self._set_status(SyncStatus.OFFLINE)
            return self.store.last_sync_at

        self._syncing = True
        self._set_status(SyncStatus.SYNCING)
        pending = self.store.tracker.consume()
        try:
            try:
                changed = set(STORAGE_KEYS) if full_sync else pending
                all_data = self.store.all_data()
                tombstones = self.store.tombstones()
                body = {
                    'deviceId': self.store.device_id,
                    'lastSyncAt': 0 if full_sync else self.store.last_sync_at,
                    'changes': build_sync_changes(changed, all_data, tombstones=tombstones),
                    'fullSync': full_sync,
                }
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                return self._fail(pending, f"Local data could not be prepared: {e}")

            try:
                result = self._post(body, token)
                cursor = int(result['cursor'])
                server_changes = result.get('changes') or []
                updates = apply_server_changes(server_changes, all_data) if server_changes else {}
            except requests.ConnectionError as e:
                self.store.tracker.restore(pending)
                logger.warning(f"Sync could not reach {self.base_url}: {e}")
                self._set_status(SyncStatus.OFFLINE, str(e))
                return self.store.last_sync_at
            except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
                return self._fail(pending, e)

            if updates:
                self.store.apply_updates(updates)
                if self.on_data_update:
                    self.on_data_update(updates)

            self.store.clear_tombstones(tombstones)
            self.store.last_sync_at = cursor
            self.consecutive_errors = 0
            self._set_status(SyncStatus.IDLE)
            logger.info(f"Synced {len(body['changes'])} changes up, {len(server_changes)} down, cursor={cursor}")
            return cursor
        finally:
            self._syncing = False

    def handle_online(self):
        self.consecutive_errors = 0
        if self.store.tracker.has_pending():
            return self.perform_sync()
        self._set_status(SyncStatus.IDLE)
        return self.store.last_sync_at

    def handle_offline(self):
        self._set_status(SyncStatus.OFFLINE)
