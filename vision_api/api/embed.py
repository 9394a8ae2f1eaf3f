"""
Purpose:
- POST /api/embed : CLIP vectors for {text?, image_url?, image_base64?}.
- Model loads start on the first request and are shared by all later ones.

Notes:
- Branches run in order text -> image; if the image branch fails the text vector
  is dropped and the whole request is a 500.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ..embed.schema import EmbedRequest, EmbedResponse
from ..embed.clip_models import initialize_models
from ..embed.clip_embedder import embed_text, embed_image
from ..embed.images import fetch_image, decode_base64_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["embedding"])

MISSING_INPUT = "Provide text, image_url, or image_base64."

@router.post("/embed")
async def embed(request: Request):
    try:
        req = EmbedRequest.from_body(await request.json())

        # start (or join) the shared model loads before looking at the inputs;
        # the branches wait on these same futures
        loads = await run_in_threadpool(initialize_models)

        out = EmbedResponse()

        if req.wants_text:
            out.text_embedding = await embed_text(req.text, loads)

        if req.wants_image:
            kind, value = req.image_source()
            if kind == "url":
                img = await run_in_threadpool(fetch_image, value)
            else:
                img = await run_in_threadpool(decode_base64_image, value)
            out.image_embedding = await embed_image(img, loads)

        if out.empty:
            return JSONResponse({"error": MISSING_INPUT}, status_code=400)

        return JSONResponse(out.model_dump(exclude_none=True), status_code=200)
    except Exception as e:
        logger.exception("Error producing CLIP embeddings")
        return JSONResponse({"error": str(e) or "Failed to produce CLIP embeddings"}, status_code=500)
