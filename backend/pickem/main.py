import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pickem.database import init_db
from pickem.errors import BracketIntegrityError, PickemError
from pickem.routes import admin, picks, tournaments

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Tennis Pick'em API")

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
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


@app.exception_handler(PickemError)
async def handle_pickem_error(request: Request, exc: PickemError):
    if isinstance(exc, BracketIntegrityError):
        logger.error("Bracket integrity error on %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": "Bracket data is inconsistent"})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include routers
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(picks.router, prefix="/api", tags=["picks"])
app.include_router(admin.router, prefix="/api", tags=["admin"])


@app.on_event("startup")
def on_startup():
    init_db()


@app.get("/api/health")
def health_check():
    return {"app_name": "Tennis Pick'em API", "status": "healthy"}
