# utils/change_tracker.py
"""Device side bookkeeping for sync.

Tracks which storage keys changed between sync cycles and converts the local
data layout (lists of favorites, notes, ...) to and from sync records.
"""
import copy
import time

STORAGE_KEYS = (
    'settings', 'favorites', 'notes', 'topics', 'activePlan',
    'planProgress', 'readingPosition', 'verseVersions', 'verseLists', 'devotionals',
)

SINGLETON_ID = '_singleton'
# Stored as one record each
SINGLETON_KEYS = ('settings', 'activePlan', 'readingPosition', 'verseVersions', 'topics')
# Lists of dicts carrying their own "id" and "updatedAt"
ID_LIST_KEYS = ('notes', 'verseLists', 'devotionals')

EMPTY_TOPICS = {'topics': [], 'verseTopics': [], 'itemTopics': []}


def _now_ms():
    return int(time.time() * 1000)


def favorite_id(fav):
    return f"{fav['bookId']}-{fav['chapter']}-{fav['verse']}"


class ChangeTracker:
    """Set of storage keys changed since the last successful sync."""

    def __init__(self, pending=()):
        self._pending = set(pending)

    def mark_changed(self, key):
        if key not in STORAGE_KEYS:
            raise ValueError(f"Unknown storage key: {key}")
        self._pending.add(key)

    def has_pending(self):
        return bool(self._pending)

    def pending(self):
        return frozenset(self._pending)

    def consume(self):
        """Return pending keys and clear them."""
        keys = set(self._pending)
        self._pending.clear()
        return keys

    def restore(self, keys):
        """Put keys back after a failed sync so the next attempt resends them."""
        self._pending.update(keys)


def build_sync_changes(changed_keys, all_data, now=None, tombstones=None):
    """Turn local data for ``changed_keys`` into a list of sync change dicts.

    ``tombstones`` maps storage key -> {item id: deleted at} for items removed
    locally, so the deletes reach the other devices.
    """
    now = now if now is not None else _now_ms()
    tombstones = tombstones or {}
    changes = []

    def add(data_type, item_id, payload, updated_at, deleted=False):
        changes.append({
            'dataType': data_type,
            'itemId': str(item_id),
            'payload': payload,
            'updatedAt': int(updated_at or now),
            'deleted': deleted,
        })

    for key in STORAGE_KEYS:
        if key not in changed_keys:
            continue
        data = all_data.get(key)

        if key == 'topics':
            add(key, SINGLETON_ID, data if data is not None else copy.deepcopy(EMPTY_TOPICS), now)
        elif key in SINGLETON_KEYS:
            add(key, SINGLETON_ID, data, now)
        elif key == 'favorites':
            for fav in data or []:
                add(key, favorite_id(fav), fav, fav.get('addedAt'))
        elif key == 'planProgress':
            for plan_id, progress in (data or {}).items():
                add(key, plan_id, progress, now)
        elif key in ID_LIST_KEYS:
            for entry in data or []:
                add(key, entry['id'], entry, entry.get('updatedAt'))

        for item_id, deleted_at in tombstones.get(key, {}).items():
            add(key, item_id, None, deleted_at, deleted=True)

    return changes


def _merge_list(current, changes, identify):
    merged = list(current or [])
    for change in changes:
        idx = next((i for i, entry in enumerate(merged) if str(identify(entry)) == change['itemId']), None)
        if change.get('deleted'):
            if idx is not None:
                merged.pop(idx)
        elif idx is not None:
            merged[idx] = change['payload']
        else:
            merged.append(change['payload'])
    return merged


def apply_server_changes(server_changes, current_data):
    """Fold server records into local data. Returns {storage key: new value} for touched keys."""
    by_type = {}
    for change in server_changes:
        by_type.setdefault(change['dataType'], []).append(change)

    updates = {}
    for data_type, changes in by_type.items():
        if data_type == 'topics':
            change = changes[-1]
            if not change.get('deleted'):
                updates[data_type] = change['payload']
        elif data_type in SINGLETON_KEYS:
            change = changes[-1]
            updates[data_type] = None if change.get('deleted') else change['payload']
        elif data_type == 'favorites':
            updates[data_type] = _merge_list(current_data.get('favorites'), changes, favorite_id)
        elif data_type == 'planProgress':
            progress = dict(current_data.get('planProgress') or {})
            for change in changes:
                if change.get('deleted'):
                    progress.pop(change['itemId'], None)
                else:
                    progress[change['itemId']] = change['payload']
            updates[data_type] = progress
        elif data_type in ID_LIST_KEYS:
            updates[data_type] = _merge_list(current_data.get(data_type), changes, lambda e: e.get('id'))
        # Unknown data types come from newer clients; leave them on the server

    return updates
