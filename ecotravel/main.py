# Role: FastAPI app bootstrap. Loads environment config early, registers routers, and exposes health/docs endpoints.

from fastapi import FastAPI

import ecotravel.config
ecotravel.config.load_env()

from ecotravel.api.chat import router as chat_router
from ecotravel.api.state import router as state_router
from ecotravel.api.trips import router as trips_router

app = FastAPI(title="EcoTravel Assistant API", version="0.1.0")
app.include_router(chat_router)
app.include_router(state_router)
app.include_router(trips_router)

@app.get("/")
def root() -> dict:
    # Role: quick discoverability for clients (where are docs/health).
    return {
        "message": "EcoTravel Assistant API is running",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
