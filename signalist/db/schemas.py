# signalist/db/schemas.py
"""MongoDB document schemas using Pydantic for validation"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Optional
from bson import ObjectId
from pydantic import BaseModel, Field, ConfigDict, GetJsonSchemaHandler, field_validator
from pydantic_core import core_schema

from signalist.utils.validators import normalize_ticker


class PyObjectId(ObjectId):
    """MongoDB ObjectId type with Pydantic v2 support."""
    @classmethod
    def __get_pydantic_core_schema__(cls, _source: Any, handler):
        def validate(v: Any) -> ObjectId:
            if isinstance(v, ObjectId):
                return v
            if isinstance(v, str) and ObjectId.is_valid(v):
                return ObjectId(v)
            raise ValueError("Invalid ObjectId")
        return core_schema.no_info_after_validator_function(
            validate,
            core_schema.union_schema([
                core_schema.is_instance_schema(ObjectId),
                core_schema.str_schema(),
            ])
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, core_schema_, handler: GetJsonSchemaHandler):
        js = handler(core_schema_)
        js.update(type="string", examples=["64f1a2b3c4d5e67890ab12cd"])
        return js


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MongoBaseModel(BaseModel):
    """Base model for MongoDB documents"""
    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: Optional[PyObjectId] = Field(default_factory=PyObjectId, alias="_id")
    created_at: datetime = Field(default_factory=_utcnow)


class User(MongoBaseModel):
    """User document schema"""
    email: str
    name: str
    hashed_password: str
    is_active: bool = True

    # Sign-up profile
    country: Optional[str] = None
    investment_goals: Optional[str] = None
    risk_tolerance: Optional[str] = None
    preferred_industry: Optional[str] = None


class WatchlistEntry(MongoBaseModel):
    """One (owner, symbol) pair; unique at the collection level."""
    user_id: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1, max_length=16)
    company: str = Field(..., min_length=1)

    @field_validator("symbol", mode="before")
    @classmethod
    def _normalize_symbol(cls, v):
        return normalize_ticker(v)

    @field_validator("company", mode="before")
    @classmethod
    def _strip_company(cls, v):
        return str(v or "").strip()
