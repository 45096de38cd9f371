"""
Error handling middleware for the tutoring API.
"""
import traceback
import json
import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from eduai.core.config import settings
from eduai.core.exceptions import InputError, TutoringError

logger = logging.getLogger(__name__)

BANNER = "=" * 80


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Logs unhandled exceptions with request context and turns them into JSON 500s.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except HTTPException as e:
            logger.warning(f"🚨 HTTP exception on {request.method} {request.url}: {e.status_code} {e.detail}")
            return JSONResponse(
                status_code=e.status_code,
                content={"detail": e.detail}
            )
        except Exception as e:
            logger.error(
                f"\n{BANNER}\n"
                f"💥 UNHANDLED EXCEPTION CAUGHT\n"
                f"📍 Route: {request.method} {request.url}\n"
                f"🏷️  Exception Type: {type(e).__name__}\n"
                f"📝 Exception Message: {e}\n"
                f"🐛 Full Traceback:\n{traceback.format_exc()}"
                f"{BANNER}"
            )

            content = {
                "detail": f"Internal server error: {str(e)}",
                "type": type(e).__name__,
            }
            if not settings.is_production:
                content["development_mode"] = True
            return JSONResponse(status_code=500, content=content)


async def tutoring_error_handler(request: Request, exc: TutoringError):
    """
    Map pipeline errors that escape an endpoint to JSON responses.

    InputError is the learner's fault (422); anything else is a server fault (500).
    """
    status_code = 422 if isinstance(exc, InputError) else 500
    logger.error(f"❌ {type(exc).__name__} on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "type": type(exc).__name__}
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Custom handler for 422 validation errors to provide detailed logging.
    """
    lines = [
        BANNER,
        "🚨 422 VALIDATION ERROR CAUGHT",
        f"📍 Route: {request.method} {request.url}",
    ]

    try:
        body = await request.body()
        if body:
            try:
                lines.append(f"📝 Parsed JSON: {json.dumps(json.loads(body.decode()), indent=2)}")
            except ValueError:
                lines.append(f"📦 Request Body: {body.decode(errors='replace')}")
    except Exception as e:
        lines.append(f"📦 Request Body: Could not read - {e}")

    lines.append("❌ Validation Errors:")
    for error in exc.errors():
        lines.append(f"   • Field: {' -> '.join(str(loc) for loc in error['loc'])}")
        lines.append(f"     Message: {error['msg']}")
        lines.append(f"     Type: {error['type']}")
    lines.append(BANNER)

    logger.warning("\n".join(lines))

    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())}
    )


def setup_error_middleware(app):
    """
    Add error handling middleware and exception handlers to the FastAPI app.
    """
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_exception_handler(TutoringError, tutoring_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info("🛡️  Error handling middleware enabled")
