"""Data models for upstream feed items."""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from src.feed.constants import STORY_TYPE


class ItemKind(str, Enum):
    """Delivery-relevant kind of an upstream item."""

    STORY = "story"
    OTHER = "other"


class FeedItem(BaseModel):
    """A single upstream item.

    Field names follow the upstream JSON object so that the model
    round-trips to the same shape clients receive. Items are transient:
    only the identifier outlives a polling cycle (in the seen-set).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(description="Upstream-assigned identifier")
    title: str = Field(default="", description="Item title, empty if absent")
    url: str = Field(default="", description="Target URL, empty if absent")
    by: str = Field(default="", description="Author handle")
    score: Annotated[int, Field(ge=0)] = 0
    type: str = Field(default="", description="Upstream item type")

    @field_validator("title", "url", "by", "type", mode="before")
    @classmethod
    def null_to_empty(cls, v: Any) -> Any:
        """Treat explicit JSON nulls like absent fields."""
        return "" if v is None else v

    @field_validator("score", mode="before")
    @classmethod
    def null_score_to_zero(cls, v: Any) -> Any:
        """Treat an explicit null score like an absent one."""
        return 0 if v is None else v

    @property
    def kind(self) -> ItemKind:
        """Get the delivery-relevant kind."""
        return ItemKind.STORY if self.type == STORY_TYPE else ItemKind.OTHER


IdentifierList = TypeAdapter(list[int])
