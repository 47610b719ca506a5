"""Map domain errors onto HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bucktrax.errors import BuckTraxValidationError, PropertyNotFoundError
from bucktrax.utils.logging import get_logger

logger = get_logger("bucktrax.api.errors")


def register_error_handlers(app: FastAPI) -> None:
    """Register domain error handlers on the app."""

    @app.exception_handler(BuckTraxValidationError)
    async def validation_error_handler(request: Request, exc: BuckTraxValidationError):
        logger.info("validation_rejected", path=str(request.url.path), **exc.to_detail())
        return JSONResponse(status_code=400, content={"detail": exc.to_detail()})

    @app.exception_handler(PropertyNotFoundError)
    async def property_not_found_handler(request: Request, exc: PropertyNotFoundError):
        return JSONResponse(
            status_code=404,
            content={"detail": str(exc), "property_id": exc.property_id},
        )
