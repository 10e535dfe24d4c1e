"""Shared schema base"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase; serializes as camelCase"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
