# models/sync.py
from sqlalchemy import Column, Integer, String, BigInteger, Boolean, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from database import Base

class SyncItem(Base):
    """One logical entity of user data (a favorite, a note, the settings blob...).

    Rows are never versioned: the record with the greatest ``updated_at`` is the
    only one kept. Deletes are tombstones (``deleted=True``) so they can be
    pulled by other devices.
    """
    __tablename__ = 'sync_items'

    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    data_type = Column(String(50), primary_key=True)
    item_id = Column(String(255), primary_key=True)

    data = Column(JSON, nullable=True)
    updated_at = Column(BigInteger, nullable=False)  # epoch millis, client clock
    deleted = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="sync_items")

    __table_args__ = (
        Index('idx_user_updated', 'user_id', 'updated_at'),
    )

    @property
    def key(self):
        return (self.data_type, self.item_id)

    def to_json(self):
        return {
            "dataType": self.data_type,
            "itemId": self.item_id,
            "payload": self.data,
            "updatedAt": self.updated_at,
            "deleted": bool(self.deleted)
        }

    def __repr__(self):
        return f'<SyncItem {self.user_id}/{self.data_type}/{self.item_id} @{self.updated_at}{" deleted" if self.deleted else ""}>'


class SyncCursor(Base):
    __tablename__ = 'sync_cursors'

    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    device_id = Column(String(100), primary_key=True)
    last_sync_at = Column(BigInteger, nullable=False, default=0)

    user = relationship("User", back_populates="sync_cursors")

    def __repr__(self):
        return f'<SyncCursor {self.user_id}/{self.device_id} @{self.last_sync_at}>'
