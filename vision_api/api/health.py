# Common language: Environment/ops probe that surfaces version pins, model config and load state.
# Use this before/after upgrades to confirm no silent drift. Never triggers a model load.

from fastapi import APIRouter
from ..core.settings import settings
from ..embed.clip_models import load_states
import sys, importlib

router = APIRouter(tags=["health"])

def _ver(modname: str) -> str:
    try:
        m = importlib.import_module(modname)
        return getattr(m, "__version__", "unknown")
    except ImportError:
        return "not-installed"

@router.get("/healthz")
def healthz():
    return {
        "status": "ok",
        "python": sys.version.split()[0],
        "versions": {
            "fastapi": _ver("fastapi"),
            "uvicorn": _ver("uvicorn"),
            "pydantic_settings": _ver("pydantic_settings"),
            "openai": _ver("openai"),
            "httpx": _ver("httpx"),
            "PIL": _ver("PIL"),
            "numpy": _ver("numpy"),
            "torch": _ver("torch"),
            "transformers": _ver("transformers"),
        },
        "config": {
            "caption_model": settings.caption_model,
            "clip_model_id": settings.clip_model_id,
            "transformers_cache": str(settings.transformers_cache),
        },
        "env_keys_present": {
            "OPENAI_API_KEY": bool(settings.openai_api_key),
        },
        "clip": load_states(),
    }
