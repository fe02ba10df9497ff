"""
Teller Ledger — FastAPI application.

This is the entry point for the application.
All routers are registered here.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from teller_ledger.config import get_settings
from teller_ledger.api.bank import router as bank_router
from teller_ledger.api.health import router as health_router
from teller_ledger.logging_config import configure_logging

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Back-office API for tellers and internet-banking customers",
    debug=settings.DEBUG,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Framework-level validation failures use the same error envelope."""
    return JSONResponse(
        status_code=400,
        content={
            "ok": False,
            "error": "ValidationError",
            "extra": {
                "errors": [
                    {
                        "field": ".".join(str(part) for part in err["loc"]),
                        "message": err["msg"],
                    }
                    for err in exc.errors()
                ]
            },
        },
    )


# Register routers
app.include_router(health_router)
app.include_router(bank_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "teller_ledger.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
