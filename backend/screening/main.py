import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from db.person_store import PersonNotFound, PersonStoreError
from screening.actions import HistoryActionError
from screening.catalogue import ProgrammeNotFound
from screening.config import get_settings
from screening.routers import people as people_router
from screening.routers import programmes as programmes_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Screening API",
    description="Which screenings and vaccinations apply to a person, and where they stand with each",
    version="0.1.0",
)

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict to your frontend domain in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
@app.exception_handler(ProgrammeNotFound)
async def programme_not_found(request: Request, exc: ProgrammeNotFound):
    return JSONResponse(status_code=404, content={"detail": "Programme not found", "id": exc.programme_id})


@app.exception_handler(PersonNotFound)
async def person_not_found(request: Request, exc: PersonNotFound):
    return JSONResponse(status_code=404, content={"detail": "Person not found", "id": exc.person_id})


@app.exception_handler(HistoryActionError)
async def history_action_error(request: Request, exc: HistoryActionError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(PersonStoreError)
async def person_store_error(request: Request, exc: PersonStoreError):
    logging.getLogger(__name__).error("Person store unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "Person store unavailable"})

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(programmes_router.router)
app.include_router(people_router.router)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
@app.get("/health", tags=["Health"])
async def health_check():
    """Returns a simple health status."""
    return {"status": "ok"}
