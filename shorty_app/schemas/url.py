from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime


class ShortenRequest(BaseModel):
    url: str = Field(..., description="The URL to be shortened, scheme optional")

    @field_validator("url")
    @classmethod
    def url_must_not_be_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("URL is required")
        return value


class ShortenResponse(BaseModel):
    short_url: str
    short_code: str
    original_url: str


class URLStats(BaseModel):
    short_code: str
    original_url: str
    clicks: int
    created_at: datetime

    # Reads straight from the SQLAlchemy model
    model_config = ConfigDict(from_attributes=True)


class URLRecord(URLStats):
    """Row of the listing endpoint"""
    id: int
