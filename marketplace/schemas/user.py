from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional
from datetime import datetime


# 👇 Public seller fields joined into product views
class SellerOut(BaseModel):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    profile_image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserOut(SellerOut):
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    pin_code: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# 👇 Identity-level write used on authentication (id comes from the token)
class UserUpsert(BaseModel):
    id: str
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


# 👇 What a signed-in user may change about themselves
class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    pin_code: Optional[str] = None

    model_config = ConfigDict(extra="forbid")
