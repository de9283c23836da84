"""Pydantic models for Discord webhook payload structures."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class EmbedImage(BaseModel):
    """Image attached to an embed."""

    url: str


class RichBlock(BaseModel):
    """Discord embed.

    Only ``image`` is interpreted; every other embed field (title, description,
    color, fields, footer, ...) is passed through untouched.
    """

    model_config = ConfigDict(extra="allow")

    image: Optional[EmbedImage] = None


class WirePayload(BaseModel):
    """Body POSTed to a Discord webhook URL."""

    content: Optional[str] = None
    embeds: Optional[list[RichBlock]] = None

    def to_json(self) -> dict[str, Any]:
        """Serialize with absent fields omitted."""
        return self.model_dump(exclude_none=True)

    @property
    def is_empty(self) -> bool:
        return self.content is None and not self.embeds
