"""Base model configuration for configuration data structures."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Frozen model that rejects unknown fields."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )
