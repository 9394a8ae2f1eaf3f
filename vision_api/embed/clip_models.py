"""
Purpose:
- Lazily load the four CLIP handles (processor, vision model, tokenizer, text model)
  once per process and share them across requests.
- Loads are single-flight: the first caller submits the load to a small thread pool,
  every other caller (concurrent or later) waits on the same Future.

Notes:
- A concurrent.futures.Future is not bound to an event loop, so the cache survives
  app restarts inside one process (e.g. several TestClient instances).
- A failed load is dropped from the cache so the next request retries it.
"""

from __future__ import annotations
import asyncio
import importlib
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

from ..core.settings import settings

logger = logging.getLogger(__name__)

HANDLES = ("processor", "vision_model", "tokenizer", "text_model")

_LOCK = threading.Lock()
_LOADS: Dict[str, Future] = {}
_EXECUTOR: Optional[ThreadPoolExecutor] = None


@lru_cache(maxsize=1)
def get_transformers():
    """
    Import transformers on first use; the import alone takes seconds.
    """
    return importlib.import_module("transformers")


def _load_processor(model_id: str, cache_dir: str):
    return get_transformers().AutoProcessor.from_pretrained(model_id, cache_dir=cache_dir)

def _load_vision_model(model_id: str, cache_dir: str):
    model_cls = get_transformers().CLIPVisionModelWithProjection
    return model_cls.from_pretrained(model_id, cache_dir=cache_dir).eval()

def _load_tokenizer(model_id: str, cache_dir: str):
    return get_transformers().AutoTokenizer.from_pretrained(model_id, cache_dir=cache_dir)

def _load_text_model(model_id: str, cache_dir: str):
    model_cls = get_transformers().CLIPTextModelWithProjection
    return model_cls.from_pretrained(model_id, cache_dir=cache_dir).eval()


LOADERS: Dict[str, Callable[[str, str], Any]] = {
    "processor": _load_processor,
    "vision_model": _load_vision_model,
    "tokenizer": _load_tokenizer,
    "text_model": _load_text_model,
}


def _executor() -> ThreadPoolExecutor:
    global _EXECUTOR
    if _EXECUTOR is None:
        _EXECUTOR = ThreadPoolExecutor(
            max_workers=max(1, settings.clip_load_workers),
            thread_name_prefix="clip-load",
        )
    return _EXECUTOR


def _run_load(name: str, model_id: str, cache_dir: str):
    logger.info("loading %s from %s", name, model_id)
    handle = LOADERS[name](model_id, cache_dir)
    logger.info("%s ready", name)
    return handle


def _evict_on_failure(name: str, fut: Future) -> None:
    if fut.cancelled() or fut.exception() is not None:
        with _LOCK:
            if _LOADS.get(name) is fut:
                del _LOADS[name]
        logger.warning("load of %s failed; will retry on next request", name)


def start_load(name: str) -> Future:
    """
    Return the shared Future for a handle, submitting the load if nobody has yet.
    """
    if name not in LOADERS:
        raise KeyError(f"unknown CLIP handle: {name}")
    with _LOCK:
        fut = _LOADS.get(name)
        if fut is None:
            cache_dir = str(settings.transformers_cache)
            fut = _executor().submit(_run_load, name, settings.clip_model_id, cache_dir)
            _LOADS[name] = fut
            created = True
        else:
            created = False
    # outside the lock: the callback may run inline if the load already finished
    if created:
        fut.add_done_callback(lambda f: _evict_on_failure(name, f))
    return fut


def initialize_models() -> Dict[str, Future]:
    """
    Kick off all four loads (no waiting).
    """
    get_transformers()
    return {name: start_load(name) for name in HANDLES}


async def get_handle(name: str):
    return await asyncio.wrap_future(start_load(name))


async def get_handles(*names: str, loads: Optional[Dict[str, Future]] = None):
    """
    Await several handles together, e.g. ("tokenizer", "text_model").
    Pass the dict from initialize_models() as `loads` to wait on exactly those
    futures; a failed one is then never resubmitted within the same request.
    """
    if loads is not None:
        return await asyncio.gather(*(asyncio.wrap_future(loads[n]) for n in names))
    return await asyncio.gather(*(get_handle(n) for n in names))


def load_states() -> Dict[str, str]:
    """
    not_started | loading | ready | failed, per handle. Never triggers a load.
    """
    with _LOCK:
        snapshot = dict(_LOADS)
    out: Dict[str, str] = {}
    for name in HANDLES:
        fut = snapshot.get(name)
        if fut is None:
            out[name] = "not_started"
        elif not fut.done():
            out[name] = "loading"
        elif fut.cancelled() or fut.exception() is not None:
            out[name] = "failed"
        else:
            out[name] = "ready"
    return out


def reset_models() -> None:
    """
    Forget every cached handle (used by tests and for a manual reload).
    """
    with _LOCK:
        _LOADS.clear()
