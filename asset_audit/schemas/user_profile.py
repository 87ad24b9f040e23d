from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel


class UserProfileRead(BaseModel):
    id: str
    email: str
    display_name: str
    role: Literal["staff", "admin"]
    created_at: datetime
    updated_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}


class UserProfileUpsert(BaseModel):
    id: str
    email: str
    display_name: str = ""
    role: Literal["staff", "admin"] = "staff"
    is_active: bool = True
