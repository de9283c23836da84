"""Webhook module for building and delivering Discord webhook payloads."""

from .client import DeliveryClient
from .models import EmbedImage, RichBlock, WirePayload
from .payload import (
    build_payload,
    build_text_payload,
    summarize_payload,
    validate_text_content,
)

__all__ = [
    "DeliveryClient",
    "WirePayload",
    "RichBlock",
    "EmbedImage",
    "build_payload",
    "build_text_payload",
    "summarize_payload",
    "validate_text_content",
]
