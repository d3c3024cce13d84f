# app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import Base, engine
from shared.core.logging_config import configure_logging
from shared.exception_handler import setup_exception_handlers
from shared.helpers.json_response_helper import success_response
from .models.hotel import customers, floors, reservations, room_classes, rooms
from .router.reservations import reservations_router
from .router.rooms import rooms_router

configure_logging()

# Create tables
if settings.AUTO_CREATE_TABLES:
    Base.metadata.create_all(bind=engine)

# This MUST exist for uvicorn
app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
setup_exception_handlers(app)

# Routers
app.include_router(reservations_router.router)
app.include_router(rooms_router.router)


@app.get("/api/health")
def health():
    return success_response({"status": "healthy"})
