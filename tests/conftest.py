import base64
import threading
from collections import Counter
from io import BytesIO
from types import SimpleNamespace

import pytest
import torch
from fastapi.testclient import TestClient
from PIL import Image

from vision_api.core.settings import settings
from vision_api.embed import clip_models
from vision_api.main import app

TEXT_DIM = 8
IMAGE_DIM = 8


def make_image_bytes(fmt: str = "JPEG", size=(16, 12), color=(200, 30, 30)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color=color).save(buf, format=fmt)
    return buf.getvalue()


class FakeTokenizer:
    def __call__(self, texts, padding=False, truncation=False, return_tensors=None):
        assert padding and truncation
        return {"input_ids": torch.ones((len(texts), 4), dtype=torch.long)}


class FakeTextModel:
    def __call__(self, input_ids=None, **kwargs):
        return SimpleNamespace(text_embeds=torch.full((input_ids.shape[0], TEXT_DIM), 0.5))


class FakeProcessor:
    def __call__(self, images=None, return_tensors=None):
        assert isinstance(images, Image.Image)
        assert images.mode == "RGB"
        return {"pixel_values": torch.zeros((1, 3, 4, 4))}


class FakeVisionModel:
    def __call__(self, pixel_values=None, **kwargs):
        return SimpleNamespace(image_embeds=torch.full((pixel_values.shape[0], IMAGE_DIM), 0.25))


class FakeLoaders:
    """
    Stand-ins for the four transformers loaders; counts calls per handle.
    Set `gate` to hold every load until the test releases it.
    """

    def __init__(self):
        self.calls = Counter()
        self.failures = {}
        self.gate = None
        self._lock = threading.Lock()
        self.handles = {
            "processor": FakeProcessor(),
            "vision_model": FakeVisionModel(),
            "tokenizer": FakeTokenizer(),
            "text_model": FakeTextModel(),
        }

    def loader(self, name):
        def load(model_id, cache_dir):
            with self._lock:
                self.calls[name] += 1
            assert model_id == settings.clip_model_id
            if self.gate is not None:
                self.gate.wait(timeout=5)
            if name in self.failures:
                raise self.failures[name]
            return self.handles[name]
        return load


@pytest.fixture
def fake_clip(monkeypatch):
    clip_models.reset_models()
    fakes = FakeLoaders()
    monkeypatch.setattr(clip_models, "get_transformers", lambda: None)
    for name in clip_models.HANDLES:
        monkeypatch.setitem(clip_models.LOADERS, name, fakes.loader(name))
    yield fakes
    if fakes.gate is not None:
        fakes.gate.set()
    clip_models.reset_models()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes("JPEG")


@pytest.fixture
def jpeg_b64(jpeg_bytes):
    return base64.b64encode(jpeg_bytes).decode("ascii")
