"""Unit tests for payload building."""

from types import SimpleNamespace

from webhook_scheduler.constants import (
    EMBED_ONLY_PLACEHOLDER,
    EMPTY_PAYLOAD_PLACEHOLDER,
    ERR_CONTENT_TOO_LONG,
    ERR_EMPTY_CONTENT,
    IMAGE_ONLY_PLACEHOLDER,
    MAX_CONTENT_LENGTH,
)
from webhook_scheduler.webhook.payload import (
    build_payload,
    build_text_payload,
    summarize_payload,
    validate_text_content,
)


def _source(message_content=None, embed_data=None, image_url=None):
    return SimpleNamespace(
        message_content=message_content, embed_data=embed_data, image_url=image_url
    )


class TestBuildPayload:
    """Test payload construction from content fields."""

    def test_text_only(self):
        assert build_payload(_source("hello")).to_json() == {"content": "hello"}

    def test_embed_passed_through(self):
        embed = {"title": "Daily report", "color": 16711680, "fields": [{"name": "a", "value": "b"}]}
        body = build_payload(_source(embed_data=embed)).to_json()
        assert body == {"embeds": [embed]}

    def test_image_folded_into_embed(self):
        body = build_payload(
            _source("hi", embed_data={"title": "T"}, image_url="https://img.example/x.png")
        ).to_json()
        assert body == {
            "content": "hi",
            "embeds": [{"title": "T", "image": {"url": "https://img.example/x.png"}}],
        }

    def test_image_overrides_embed_image(self):
        body = build_payload(
            _source(
                embed_data={"title": "T", "image": {"url": "https://old.example/a.png"}},
                image_url="https://new.example/b.png",
            )
        ).to_json()
        assert body["embeds"][0]["image"] == {"url": "https://new.example/b.png"}

    def test_image_only(self):
        body = build_payload(_source(image_url="https://img.example/x.png")).to_json()
        assert body == {"embeds": [{"image": {"url": "https://img.example/x.png"}}]}

    def test_nothing_gives_empty_payload(self):
        payload = build_payload(_source())
        assert payload.is_empty
        assert payload.to_json() == {}

    def test_empty_string_content_dropped(self):
        assert "content" not in build_payload(_source("", image_url="https://i/x.png")).to_json()

    def test_source_embed_not_mutated(self):
        embed = {"title": "T"}
        build_payload(_source(embed_data=embed, image_url="https://i/x.png"))
        assert embed == {"title": "T"}

    def test_at_most_one_embed(self):
        body = build_payload(_source(embed_data={"title": "T"}, image_url="https://i/x.png")).to_json()
        assert len(body["embeds"]) == 1


class TestTextPayload:
    """Test plain-text payloads and their validation."""

    def test_build_text_payload(self):
        assert build_text_payload("ping").to_json() == {"content": "ping"}

    def test_valid_content(self):
        assert validate_text_content("ping") is None

    def test_empty_content(self):
        assert validate_text_content("") == ERR_EMPTY_CONTENT
        assert validate_text_content("   ") == ERR_EMPTY_CONTENT
        assert validate_text_content(None) == ERR_EMPTY_CONTENT

    def test_length_limit(self):
        assert validate_text_content("x" * MAX_CONTENT_LENGTH) is None
        assert validate_text_content("x" * (MAX_CONTENT_LENGTH + 1)) == ERR_CONTENT_TOO_LONG


class TestSummarizePayload:
    """Test the text recorded in the message log."""

    def test_content_wins(self):
        assert summarize_payload({"content": "hi", "embeds": [{"title": "T"}]}) == "hi"

    def test_embed_title(self):
        assert summarize_payload({"embeds": [{"title": "Report"}]}) == "Report"

    def test_untitled_embed(self):
        assert summarize_payload({"embeds": [{"description": "d"}]}) == EMBED_ONLY_PLACEHOLDER

    def test_image_only(self):
        assert summarize_payload({"embeds": [{"image": {"url": "u"}}]}) == IMAGE_ONLY_PLACEHOLDER

    def test_empty(self):
        assert summarize_payload({}) == EMPTY_PAYLOAD_PLACEHOLDER

    def test_accepts_wire_payload(self):
        assert summarize_payload(build_text_payload("hello")) == "hello"
