from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from stockroom.core.config import get_settings
from stockroom.core.errors import register_exception_handlers
from stockroom.routers.auth import router as auth_router
from stockroom.routers.health import router as health_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.APP_NAME,
    description="Inventory API - Recipe costing, production planning, department stock ledger and ingredient usage reconciliation.",
    version="0.1.0",
)

register_exception_handlers(app)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from stockroom.routers.users import router as users_router
from stockroom.routers.products import router as products_router
from stockroom.routers.departments import router as departments_router
from stockroom.routers.recipes import router as recipes_router
from stockroom.routers.calculations import router as calculations_router
from stockroom.routers.stocks import router as stocks_router
from stockroom.routers.logs import router as logs_router
from stockroom.routers.reports import router as reports_router

app.include_router(health_router)
app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(products_router, prefix="/api")
app.include_router(departments_router, prefix="/api")
app.include_router(recipes_router, prefix="/api")
app.include_router(calculations_router, prefix="/api")
app.include_router(stocks_router, prefix="/api")
app.include_router(logs_router, prefix="/api")
app.include_router(reports_router, prefix="/api")


@app.get("/")
def read_root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/docs",
        "health": "/health"
    }
