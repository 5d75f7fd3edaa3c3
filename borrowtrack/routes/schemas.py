from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Optional


class ExtendRequest(BaseModel):
    due_date: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ReturnRequest(BaseModel):
    returned_by: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LoginRequest(BaseModel):
    login: str
    password: str


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CatalogEntry(BaseModel):
    item: Optional[str] = None
    image_url: Optional[str] = None
    location: Optional[str] = None
    department: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
