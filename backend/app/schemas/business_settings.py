"""
Pydantic schemas for business settings.

Accepts camelCase or snake_case keys.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BusinessSettingsCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    business_name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    currency: str = Field(default="GHS", max_length=8)
    logo_url: Optional[str] = None
    tax_rate: float = Field(default=0.0, ge=0, le=100)
    social_links: Dict[str, str] = Field(default_factory=dict)


class BusinessSettingsResponse(BaseModel):
    id: str
    business_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    currency: str
    logo_url: Optional[str] = None
    tax_rate: float
    social_links: Dict[str, str]
    created_at: str
    updated_at: str
