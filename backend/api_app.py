"""FastAPI application entrypoint.

Serves the zone map API: zone layouts, the establishments placed on each
zone, and the move/swap endpoint used by map drag & drop.

Run locally with:
    uvicorn api_app:app --reload
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.logging_config import configure_logging
from db.database import init_db
from grid_move.grid_move_router import router as grid_move_router

settings = get_settings()

app = FastAPI(title="Zone Grid API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(grid_move_router)


@app.on_event("startup")
def _startup() -> None:
    configure_logging()
    # Ensure the DB tables exist before serving requests.
    init_db()
