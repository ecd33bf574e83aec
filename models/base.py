"""
Base schemas for all models.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """
    Base for request schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True
    )


class WireSchema(BaseModel):
    """
    Base for models exchanged with the prompt library.

    Python attributes are snake_case; JSON uses camelCase (promptContent,
    isPublic, ...). Both spellings are accepted on input. Strings are kept
    verbatim since prompt text is user content.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True
    )

    def to_wire(self) -> dict:
        """Dump with camelCase keys, JSON-compatible values."""
        return self.model_dump(by_alias=True, mode="json")
