"""
Purpose:
- POST /api/describe : multipart upload (field "image") -> caption string from the hosted VLM.
- Always answers JSON; every failure past input validation is a generic 500.
"""

import logging
from typing import Optional

from fastapi import APIRouter, UploadFile, File
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ..vlm.describer import describe_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["caption"])

@router.post("/describe")
async def describe(image: Optional[UploadFile] = File(None)):
    """
    Caption the uploaded image. Returns the caption as a bare JSON string.
    """
    if image is None:
        return JSONResponse({"error": "No image file provided"}, status_code=400)
    try:
        raw = await image.read()
        # blocking HTTP call to the chat API; keep it off the event loop
        caption = await run_in_threadpool(describe_image, raw, image.content_type)
        return JSONResponse(caption, status_code=200)
    except Exception:
        logger.exception("Error generating caption")
        return JSONResponse({"error": "Failed to process image"}, status_code=500)
