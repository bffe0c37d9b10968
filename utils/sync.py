# utils/sync.py
"""Server side of multi-device sync.

Every piece of user data is a SyncItem keyed by (user, data type, item id).
Conflicts are settled per key by last-write-wins on the client supplied
``updated_at``: a strictly newer record replaces the stored one, an equal or
older one is ignored. Since that rule is idempotent and order independent,
devices converge without any locking between them.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from models.sync import SyncItem, SyncCursor

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    cursor: int
    changes: List[SyncItem] = field(default_factory=list)

    def to_json(self):
        return {
            "cursor": self.cursor,
            "changes": [item.to_json() for item in self.changes]
        }


def _same_record(item, change):
    return (
        item.updated_at == change.updated_at
        and bool(item.deleted) == bool(change.deleted)
        and item.data == change.payload
    )


class SyncReconciler:
    """Applies device changes and computes what a device still has to see.

    All work happens inside the caller's session; the caller owns the
    transaction so a failure never leaves a cursor ahead of unwritten items.
    """

    def __init__(self, db):
        self.db = db

    def _get_item(self, user_id, data_type, item_id):
        return self.db.get(SyncItem, (user_id, data_type, item_id))

    def get_cursor(self, user_id, device_id):
        cursor = self.db.get(SyncCursor, (user_id, device_id))
        return cursor.last_sync_at if cursor else 0

    def _advance_cursor(self, user_id, device_id, value):
        cursor = self.db.get(SyncCursor, (user_id, device_id))
        if cursor is None:
            cursor = SyncCursor(user_id=user_id, device_id=device_id, last_sync_at=value)
            self.db.add(cursor)
        elif value > cursor.last_sync_at:
            cursor.last_sync_at = value
        self.db.flush()
        return cursor.last_sync_at

    def apply_change(self, user_id, change):
        """Write ``change`` if it is newer than what is stored. Returns (stored item, applied)."""
        existing = self._get_item(user_id, change.data_type, change.item_id)

        if existing is None:
            item = SyncItem(
                user_id=user_id,
                data_type=change.data_type,
                item_id=change.item_id,
                data=change.payload,
                updated_at=change.updated_at,
                deleted=change.deleted
            )
            self.db.add(item)
            self.db.flush()
            return item, True

        if change.updated_at > existing.updated_at:
            existing.data = change.payload
            existing.updated_at = change.updated_at
            existing.deleted = change.deleted
            self.db.flush()
            return existing, True

        # Equal timestamps keep the stored record, so re-sending a batch is a no-op
        return existing, False

    def push(self, user_id, device_id, changes):
        """Apply a batch of device changes. Returns the stored records that beat the device's version."""
        # sorted() is stable: equal timestamps keep arrival order
        ordered = sorted(changes, key=lambda c: c.updated_at)
        applied = 0
        latest = {}
        for change in ordered:
            item, won = self.apply_change(user_id, change)
            applied += int(won)
            latest[change.key] = (item, change)

        rejected = [item for item, change in latest.values() if not _same_record(item, change)]
        logger.info(
            f"Sync push user={user_id} device={device_id}: {len(ordered)} changes, "
            f"{applied} applied, {len(rejected)} superseded by server"
        )
        return rejected

    def _changed_since(self, user_id, cursor, full):
        query = self.db.query(SyncItem).filter(SyncItem.user_id == user_id)
        if full:
            query = query.filter(SyncItem.deleted.is_(False))
        else:
            query = query.filter(SyncItem.updated_at > cursor)
        return query.order_by(SyncItem.updated_at, SyncItem.data_type, SyncItem.item_id).all()

    def pull(self, user_id, device_id, cursor=0, full=False):
        """Records the device hasn't seen yet, and the advanced cursor.

        A full pull ignores ``cursor`` and returns every live record; an
        incremental one returns everything (tombstones included) newer than it.
        """
        cursor = max(int(cursor or 0), 0)
        items = self._changed_since(user_id, cursor, full)

        observed = [self.get_cursor(user_id, device_id)]
        if not full:
            observed.append(cursor)
        observed.extend(item.updated_at for item in items)

        new_cursor = self._advance_cursor(user_id, device_id, max(observed))
        logger.info(f"Sync pull user={user_id} device={device_id} full={full}: {len(items)} records, cursor={new_cursor}")
        return SyncResult(cursor=new_cursor, changes=items)

    def exchange(self, user_id, device_id, cursor=0, changes=(), full=False):
        """Push the device's changes, then pull everything it still lacks."""
        changes = list(changes)
        cursor = max(int(cursor or 0), 0)
        rejected = self.push(user_id, device_id, changes)

        sent_keys = {change.key for change in changes}
        response = {item.key: item for item in rejected}
        for item in self._changed_since(user_id, cursor, full):
            if item.key not in sent_keys:
                response[item.key] = item

        observed = [self.get_cursor(user_id, device_id)]
        if not full:
            observed.append(cursor)
        observed.extend(change.updated_at for change in changes)
        observed.extend(item.updated_at for item in response.values())

        new_cursor = self._advance_cursor(user_id, device_id, max(observed))
        ordered = sorted(response.values(), key=lambda i: (i.updated_at, i.data_type, i.item_id))
        logger.info(f"Sync exchange user={user_id} device={device_id}: returning {len(ordered)} records, cursor={new_cursor}")
        return SyncResult(cursor=new_cursor, changes=ordered)

    def purge_tombstones(self, user_id, older_than):
        """Physically remove deleted records last written before ``older_than``."""
        count = self.db.query(SyncItem).filter(
            SyncItem.user_id == user_id,
            SyncItem.deleted.is_(True),
            SyncItem.updated_at < older_than
        ).delete(synchronize_session=False)
        logger.info(f"Purged {count} tombstones for user={user_id} older than {older_than}")
        return count
