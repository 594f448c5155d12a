from typing import Any

from pydantic import BaseModel, ConfigDict


class BaseModelWithMethods(BaseModel):
    """Base model with dict/json helpers shared by the API models."""

    def to_json(self, **kwargs: Any) -> str:
        return self.model_dump_json(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()


class FrozenModel(BaseModelWithMethods):
    """Immutable model; assigning to a field raises a ValidationError."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
