"""
REST API main application.
Entry point for the FastAPI REST server.

Run with:
    uvicorn taqueria_api.main:app --port 3001
"""

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.config.settings import settings
from shared.config.logging import rest_api_logger as logger
from shared.infrastructure.correlation import CorrelationIdMiddleware
from shared.infrastructure.db import get_db
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import HealthOutput
from taqueria_api.core import configure_cors, lifespan
from taqueria_api.routers import (
    audit_router,
    auth_router,
    dashboard_router,
    orders_router,
    products_router,
    tables_router,
    users_router,
)


app = FastAPI(
    title="Taquería POS API",
    description="Orders, tables, menu and inventory for a taquería",
    version="1.0.0",
    lifespan=lifespan,
)

configure_cors(app)
app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Validation failures also name the offending field."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "field": exc.field},
    )


# =============================================================================
# Health Check
# =============================================================================


@app.get("/api/health", response_model=HealthOutput)
def health_check(db: Session = Depends(get_db)):
    """Health check including a database round trip."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error("Health check database failure", error=str(e))
        database = "error"

    body = HealthOutput(
        status="ok" if database == "ok" else "degraded",
        database=database,
        environment=settings.environment,
    )
    if database != "ok":
        return JSONResponse(content=body.model_dump(), status_code=503)
    return body


# =============================================================================
# Routers
# =============================================================================

app.include_router(auth_router)
app.include_router(orders_router)
app.include_router(products_router)
app.include_router(tables_router)
app.include_router(users_router)
app.include_router(dashboard_router)
app.include_router(audit_router)
