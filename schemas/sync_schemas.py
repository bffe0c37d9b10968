from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from typing import Any, List, Optional


class SyncChange(BaseModel):
    """One record as exchanged with a device."""
    model_config = ConfigDict(populate_by_name=True)

    data_type: str = Field(..., alias='dataType', min_length=1, max_length=50)
    item_id: str = Field(..., alias='itemId', min_length=1, max_length=255)
    # Older clients send the record under "data"
    payload: Any = Field(None, validation_alias=AliasChoices('payload', 'data'))
    updated_at: int = Field(..., alias='updatedAt', ge=0)
    deleted: bool = False

    @property
    def key(self):
        return (self.data_type, self.item_id)


class SyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    device_id: str = Field(..., alias='deviceId', min_length=1, max_length=100)
    last_sync_at: int = Field(0, alias='lastSyncAt', ge=0)
    changes: List[SyncChange] = Field(default_factory=list)
    full_sync: bool = Field(False, alias='fullSync')


class UserBibleIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    mapping_id: str = Field(..., alias='mappingId', max_length=50)
    verse_counts: Optional[Any] = Field(None, alias='verseCounts')
    uploaded_at: int = Field(..., alias='uploadedAt', ge=0)
    deleted: bool = False


class UserBibleSyncRequest(BaseModel):
    bibles: List[UserBibleIn] = Field(default_factory=list)


class ChapterIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    book_id: int = Field(..., alias='bookId', ge=1, le=66)
    chapter: int = Field(..., ge=1)
    data: Any


class ChapterUploadRequest(BaseModel):
    chapters: List[ChapterIn] = Field(default_factory=list)
