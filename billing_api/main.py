# billing_api/main.py
import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from . import __version__
from .admin import router as admin_router
from .balances import router as balances_router
from .config import get_settings
from .contracts import router as contracts_router
from .db import get_session
from .errors import BillingError
from .jobs import router as jobs_router

log = logging.getLogger("uvicorn.error")

app = FastAPI(
    title="Billing API",
    version=__version__,
    docs_url="/docs",
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


@app.get("/", tags=["default"])
def read_root():
    return {"ok": True, "service": "billing-api"}


@app.get("/health/db", tags=["health"])
def health_db(session: Session = Depends(get_session)):
    try:
        session.execute(text("select 1")).scalar_one()
        return {"ok": True, "db": "up"}
    except Exception as e:
        log.error(f"DB check failed: {e}")
        raise HTTPException(status_code=503, detail=f"DB check failed: {e}")


app.include_router(contracts_router)
app.include_router(jobs_router)
app.include_router(balances_router)
app.include_router(admin_router)
