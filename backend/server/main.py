import logging

import uvicorn
from fastapi import FastAPI

from config.settings import SERVER_LOG_LEVEL, UVICORN_CONFIG
from server.api.rest.dependencies import shutdown_dependencies, startup_dependencies
from server.api_router import api_router

logging.basicConfig(
    level=SERVER_LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Movie Curator", description="Watchlist curation API: live lists, metadata enrichment and taste analysis")

app.include_router(api_router)


@app.on_event("startup")
async def startup_event():
    await startup_dependencies()


@app.on_event("shutdown")
async def shutdown_event():
    """Close the curator session, its subscription and HTTP sessions."""
    await shutdown_dependencies()


if __name__ == "__main__":
    uvicorn.run("server.main:app", **UVICORN_CONFIG)
