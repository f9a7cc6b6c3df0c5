from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class GameMappingIn(BaseModel):
    app_id: str = Field(alias="appId")
    file_id: str = Field(alias="fileId")
    name: Optional[str] = None
    size_bytes: Optional[int] = Field(default=None, alias="sizeBytes", ge=0)
    art: Optional[str] = None

    class Config:
        populate_by_name = True

    @field_validator("app_id", mode="before")
    @classmethod
    def app_id_digits(cls, value) -> str:
        cleaned = str(value or "").strip()
        if not cleaned.isdigit() or not cleaned.isascii():
            raise ValueError("must be a numeric Steam app id")
        return cleaned

    @field_validator("file_id", mode="before")
    @classmethod
    def file_id_present(cls, value) -> str:
        cleaned = str(value or "").strip()
        if not cleaned:
            raise ValueError("must not be empty")
        return cleaned


class GameMappingOut(BaseModel):
    app_id: str = Field(alias="appId")
    name: Optional[str] = None
    file_id: Optional[str] = Field(default=None, alias="fileId")
    size_bytes: Optional[int] = Field(default=None, alias="sizeBytes")
    art: Optional[str] = None
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class SteamAppOut(BaseModel):
    app_id: str = Field(alias="appId")
    name: Optional[str] = None
    header_image: Optional[str] = Field(default=None, alias="headerImage")
    type: Optional[str] = None

    class Config:
        populate_by_name = True
