# app.py
import logging
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scor import __version__
from scor.config import settings
from scor.routers import api_router
from scor.services.cache_service import ResultCache
from scor.services.scoring_service import ScoringService


def create_app(service: Optional[ScoringService] = None) -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="DAO Credit Risk API",
        description="Risk scores and financing decisions for DAO treasuries from on-chain data",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.scoring_service = service or ScoringService(
        cache=ResultCache(ttl=timedelta(hours=settings.CACHE_TTL_HOURS)),
    )
    app.include_router(api_router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
