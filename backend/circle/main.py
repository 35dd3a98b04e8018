"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from circle.config import settings
from circle.database import Base, engine

# Import routers
from circle.routers import users, circles, events, rsvps, payments

# Import all models so Base.metadata knows about them
from circle.models.user import User                          # noqa: F401
from circle.models.circle import Circle, CircleMember          # noqa: F401
from circle.models.event import Event                          # noqa: F401
from circle.models.rsvp import Rsvp                            # noqa: F401
from circle.models.payment import Payment                      # noqa: F401
from circle.models.rsvp_history import RsvpHistoryEntry        # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(
    title="Circle Manager",
    description="Club management: members, event RSVPs with cancellation policies, and fee collection",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(circles.router, prefix="/api/circles", tags=["Circles"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(rsvps.router, prefix="/api/events", tags=["RSVPs"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
