"""
FastAPI application entry point
"""
from dotenv import load_dotenv
from pathlib import Path
import logging

# Load .env from the repository root, falling back to the working directory
root_env = Path(__file__).parent.parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)
else:
    load_dotenv()

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnplatform.api import admin, auth, courses, instructor, labs, lessons, quizzes, users
from learnplatform.core.config import get_settings
from learnplatform.core.errors import MESSAGES

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _get_cors_config() -> tuple[list[str], str | None]:
    """
    CORS configuration

    Returns:
        (allow_origins, allow_origin_regex)
        - ALLOWED_ORIGINS set: exact origin list
        - DEV_MODE: any local port
        - otherwise: no cross-origin requests
    """
    if settings.allowed_origins:
        return settings.allowed_origins, None

    if settings.dev_mode:
        return [], r"http://(localhost|127\.0\.0\.1)(:\d+)?"

    logger.warning("ALLOWED_ORIGINS is not set and DEV_MODE is off, CORS will reject all cross-origin requests")
    return [], None


app = FastAPI(
    title="LearnPlatform API",
    description="E-learning platform - enrollments, lessons, quizzes and labs",
    version="0.1.0"
)

allow_origins, allow_origin_regex = _get_cors_config()
logger.info(f"CORS config: origins={allow_origins}, regex={allow_origin_regex}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error leaves as {"error": <message>}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": MESSAGES["invalid_data"], "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": MESSAGES["server_error"]},
    )


app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(users.router, prefix="/api", tags=["users"])
app.include_router(courses.router, prefix="/api", tags=["courses"])
app.include_router(lessons.router, prefix="/api", tags=["lessons"])
app.include_router(quizzes.router, prefix="/api", tags=["quizzes"])
app.include_router(labs.router, prefix="/api", tags=["labs"])
app.include_router(admin.router, prefix="/api", tags=["admin"])
app.include_router(instructor.router, prefix="/api", tags=["instructor"])


@app.get("/")
async def root():
    return {"message": "LearnPlatform API", "docs": "/docs"}


@app.get("/health")
async def health():
    """Health check"""
    return {
        "status": "healthy",
        "dev_mode": settings.dev_mode,
        "quiz_xp_policy": settings.quiz_xp_policy,
        "lab_completion_gate": settings.lab_completion_gate,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
