from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")

class CamelModel(BaseModel):
    """Snake case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

# Errors use the same envelope with success=false; see the handlers in main.py
class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
