import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from brackets.database import init_db
from brackets.routes import stages

logger = logging.getLogger(__name__)

app = FastAPI(title="Gymnastics Brackets API")

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

app.include_router(stages.router, prefix="/api", tags=["stages"])


@app.on_event("startup")
async def on_startup():
    await init_db()  # Imports models and creates missing tables
    logger.info("Registered %d routes", len(app.routes))


@app.get("/api/health")
def health_check():
    """Diagnostic endpoint to verify which code is running"""
    return {"app_name": "Gymnastics Brackets API", "status": "healthy"}
