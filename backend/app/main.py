# main.py
"""
Point d'entrée de l'API SailMS Registrations.
Enregistre les modules via leurs routers et les handlers d'erreurs.

Architecture : modules verticaux (router / service / repository) + engine pur.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.logging import configure_logging
from app.shared.exceptions import (
    ServiceException,
    service_exception_handler,
    http_exception_handler,
    general_exception_handler,
)

from app.modules.registration.router import router as registration_router
from app.modules.journey.router      import router as journey_router

configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ServiceException, service_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(registration_router)
app.include_router(journey_router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
