from types import SimpleNamespace

import pytest

from vision_api.core.settings import settings
from vision_api.vlm import describer
from vision_api.vlm.describer import CaptionConfigError, CaptionError, describe_image, to_base64


class FakeCompletions:
    def __init__(self, content="A red square on a white table.", error=None, choices=True):
        self.content = content
        self.error = error
        self.choices = choices
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if not self.choices:
            return SimpleNamespace(choices=[])
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


@pytest.fixture
def fake_openai(monkeypatch):
    completions = FakeCompletions()
    monkeypatch.setattr(settings, "openai_api_key", "sk-test")
    monkeypatch.setattr(describer, "get_client", lambda: SimpleNamespace(chat=SimpleNamespace(completions=completions)))
    return completions


def test_describe_returns_caption_as_json_string(client, fake_openai, jpeg_bytes):
    r = client.post("/api/describe", files={"image": ("cat.jpg", jpeg_bytes, "image/jpeg")})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == "A red square on a white table."


def test_describe_sends_prompt_and_data_url(client, fake_openai, jpeg_bytes):
    r = client.post("/api/describe", files={"image": ("pic.png", jpeg_bytes, "image/png")})
    assert r.status_code == 200

    call = fake_openai.calls[0]
    assert call["model"] == settings.caption_model
    parts = call["messages"][0]["content"]
    assert parts[0] == {"type": "text", "text": settings.caption_prompt}
    assert "unambiguously" in parts[0]["text"]
    b64, _ = to_base64(jpeg_bytes)
    assert parts[1]["image_url"]["url"] == f"data:image/png;base64,{b64}"


def test_describe_missing_image_is_400(client, fake_openai):
    r = client.post("/api/describe", data={"note": "no file here"})
    assert r.status_code == 400
    assert r.json() == {"error": "No image file provided"}
    assert fake_openai.calls == []


def test_describe_non_multipart_body_is_400(client, fake_openai):
    r = client.post("/api/describe", json={"image": "not-a-file"})
    assert r.status_code == 400
    assert fake_openai.calls == []
    assert r.json() == {"error": "No image file provided"}


def test_describe_empty_content_is_500(client, fake_openai, jpeg_bytes):
    fake_openai.content = ""
    r = client.post("/api/describe", files={"image": ("cat.jpg", jpeg_bytes, "image/jpeg")})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to process image"}


def test_describe_upstream_error_is_500(client, fake_openai, jpeg_bytes):
    fake_openai.error = ConnectionError("upstream down")
    r = client.post("/api/describe", files={"image": ("cat.jpg", jpeg_bytes, "image/jpeg")})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to process image"}


def test_describe_without_api_key_is_500(client, monkeypatch, jpeg_bytes):
    monkeypatch.setattr(settings, "openai_api_key", None)
    r = client.post("/api/describe", files={"image": ("cat.jpg", jpeg_bytes, "image/jpeg")})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to process image"}


def test_describe_is_repeatable(client, fake_openai, jpeg_bytes):
    first = client.post("/api/describe", files={"image": ("cat.jpg", jpeg_bytes, "image/jpeg")})
    second = client.post("/api/describe", files={"image": ("cat.jpg", jpeg_bytes, "image/jpeg")})
    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()


def test_mime_defaults_to_jpeg(fake_openai):
    describe_image(b"\xff\xd8\xff", None)
    url = fake_openai.calls[0]["messages"][0]["content"][1]["image_url"]["url"]
    assert url.startswith("data:image/jpeg;base64,")
    assert to_base64(b"abc", "")[1] == "image/jpeg"


def test_describe_image_raises_on_no_choices(fake_openai):
    fake_openai.choices = False
    with pytest.raises(CaptionError):
        describe_image(b"\xff\xd8\xff", "image/jpeg")


def test_get_client_requires_key(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", None)
    with pytest.raises(CaptionConfigError, match="OPENAI_API_KEY"):
        describer.get_client()
