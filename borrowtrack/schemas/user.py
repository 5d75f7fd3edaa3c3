from typing import Literal

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class UserProfile(BaseModel):
    uid: str
    username: str
    email: str
    role: Literal["admin", "user"] = "user"
    created_at: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
