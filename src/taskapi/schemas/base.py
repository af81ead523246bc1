"""Shared schema base.

Learn: The JSON wire format is camelCase (dueDate, assignedToUserId) while
Python attributes stay snake_case. Request bodies accept either spelling;
FastAPI serializes responses by alias, so clients always see camelCase.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
