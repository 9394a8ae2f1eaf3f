"""
Purpose:
- Run the shared CLIP handles on one text or one image and return a flat list[float].
- Handles come from clip_models (loaded once per process); forward passes run in the
  threadpool so the event loop stays free.
"""

from __future__ import annotations
from concurrent.futures import Future
from typing import Dict, List, Optional

import numpy as np
import torch
from fastapi.concurrency import run_in_threadpool
from PIL import Image

from .clip_models import get_handles

def _to_vector(t) -> List[float]:
    if isinstance(t, torch.Tensor):
        t = t.detach().cpu().numpy()
    return np.asarray(t, dtype=np.float32).reshape(-1).tolist()

def _text_forward(tokenizer, text_model, text: str) -> List[float]:
    inputs = tokenizer([text], padding=True, truncation=True, return_tensors="pt")
    with torch.no_grad():
        out = text_model(**inputs)
    return _to_vector(out.text_embeds)

def _image_forward(processor, vision_model, img: Image.Image) -> List[float]:
    inputs = processor(images=img, return_tensors="pt")
    with torch.no_grad():
        out = vision_model(**inputs)
    return _to_vector(out.image_embeds)

async def embed_text(text: str, loads: Optional[Dict[str, Future]] = None) -> List[float]:
    tokenizer, text_model = await get_handles("tokenizer", "text_model", loads=loads)
    return await run_in_threadpool(_text_forward, tokenizer, text_model, text)

async def embed_image(img: Image.Image, loads: Optional[Dict[str, Future]] = None) -> List[float]:
    processor, vision_model = await get_handles("processor", "vision_model", loads=loads)
    return await run_in_threadpool(_image_forward, processor, vision_model, img)
