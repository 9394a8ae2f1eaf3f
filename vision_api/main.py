"""
Purpose:
- FastAPI application factory and router mounts.
- Adds CORS for local dev + configured origins.
- Uvicorn serves this on settings.host:settings.port (0.0.0.0:8000 by default).
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.settings import settings
from .api.health import router as health_router
from .api.describe import router as describe_router
from .api.embed import router as embed_router

def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Vision Caption & Embedding API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health_router)
    app.include_router(describe_router)
    app.include_router(embed_router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
