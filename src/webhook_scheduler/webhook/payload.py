"""Build wire payloads from schedule and template content fields."""

from typing import Any, Optional, Protocol, Union

from ..constants import (
    EMBED_ONLY_PLACEHOLDER,
    EMPTY_PAYLOAD_PLACEHOLDER,
    ERR_CONTENT_TOO_LONG,
    ERR_EMPTY_CONTENT,
    IMAGE_ONLY_PLACEHOLDER,
    MAX_CONTENT_LENGTH,
)
from .models import EmbedImage, RichBlock, WirePayload


class ContentFields(Protocol):
    """Anything carrying schedule-style content fields (schedules, templates)."""

    message_content: Optional[str]
    embed_data: Optional[dict[str, Any]]
    image_url: Optional[str]


def build_payload(source: ContentFields) -> WirePayload:
    """
    Build the Discord payload for a schedule or template.

    At most one embed is produced. An image reference is attached to the
    embed, or becomes an image-only embed when there is no embed. With no
    content at all the payload is empty; rejecting that is up to the caller.

    Args:
        source: Object with message_content, embed_data and image_url

    Returns:
        WirePayload ready for delivery
    """
    payload = WirePayload()

    # Plain text
    if source.message_content:
        payload.content = source.message_content

    # Embed, with the image folded in
    if source.embed_data:
        embed = RichBlock.model_validate(dict(source.embed_data))
        if source.image_url:
            embed.image = EmbedImage(url=source.image_url)
        payload.embeds = [embed]
    elif source.image_url:
        payload.embeds = [RichBlock(image=EmbedImage(url=source.image_url))]

    return payload


def build_text_payload(content: str) -> WirePayload:
    """Payload for a plain-text message."""
    return WirePayload(content=content)


def validate_text_content(content: Optional[str]) -> Optional[str]:
    """
    Check plain-text message content before it is accepted for sending.

    Returns:
        Human-readable error, or None if the content is acceptable
    """
    if content is None or not content.strip():
        return ERR_EMPTY_CONTENT
    if len(content) > MAX_CONTENT_LENGTH:
        return ERR_CONTENT_TOO_LONG
    return None


def summarize_payload(payload: Union[WirePayload, dict[str, Any]]) -> str:
    """
    Short text recorded in the message log for a payload.

    Args:
        payload: Wire payload or its JSON form

    Returns:
        The plain text, else the embed title, else a placeholder
    """
    if isinstance(payload, WirePayload):
        payload = payload.to_json()

    content = payload.get("content")
    if content:
        return content

    embeds = payload.get("embeds") or []
    if embeds:
        first = embeds[0]
        if first.get("title"):
            return str(first["title"])
        if set(first) == {"image"}:
            return IMAGE_ONLY_PLACEHOLDER
        return EMBED_ONLY_PLACEHOLDER

    return EMPTY_PAYLOAD_PLACEHOLDER
