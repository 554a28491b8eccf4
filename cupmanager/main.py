import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cupmanager.database import init_db
from cupmanager.routes import events, teams, tournament
from cupmanager.services.tournament_service import DrawLocks

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Cup Manager API"

app = FastAPI(title=APP_NAME)
app.state.draw_locks = DrawLocks()

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(teams.router, prefix="/api", tags=["teams"])
app.include_router(events.router, prefix="/api", tags=["events"])
app.include_router(tournament.router, prefix="/api", tags=["tournament"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("%s started", APP_NAME)


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}
