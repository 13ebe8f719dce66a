"""
Shared pydantic base for models that travel over the wire.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Model serialized with camelCase keys but populated by field name or alias."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
