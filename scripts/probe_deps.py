"""
Purpose:
- Sanity-check critical library versions after upgrades.
- Import the exact modules we use and print versions so we can spot drift immediately.
"""

import sys
import numpy
import PIL
import httpx
import openai
import torch
import transformers
import fastapi
import uvicorn
from pydantic_settings import BaseSettings
from transformers import AutoTokenizer, CLIPTextModelWithProjection

MODEL_ID = "openai/clip-vit-base-patch16"

print("python", sys.version)
print("numpy", numpy.__version__)
print("pillow", PIL.__version__)
print("httpx", httpx.__version__)
print("openai", openai.__version__)
print("torch", torch.__version__)
print("transformers", transformers.__version__)
print("fastapi", fastapi.__version__)
print("uvicorn", uvicorn.__version__)
print("pydantic-settings", BaseSettings.__module__.split(".")[0])  # presence check
# lightweight text tower load to ensure CLIP works post-upgrade
tok = AutoTokenizer.from_pretrained(MODEL_ID)
model = CLIPTextModelWithProjection.from_pretrained(MODEL_ID).eval()
with torch.no_grad():
    emb = model(**tok(["a photo of a cat"], padding=True, truncation=True, return_tensors="pt")).text_embeds
print("clip_text_dim", emb.shape[-1])
print("OK")
