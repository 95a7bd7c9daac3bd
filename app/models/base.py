"""Shared pydantic base for documents stored with camelCase field names."""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model whose fields read and serialize as camelCase, populate by name."""

    model_config = {"populate_by_name": True, "alias_generator": to_camel}
