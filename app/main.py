from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.core.errors import AppError, format_error_response
from app.core.logger import get_logger
from app.routes import api_router
from app.db.base import Base
from app.db.session import engine

# Initialize logger
logger = get_logger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json"
)

logger.info("Initializing FastAPI application")

# Set up CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS middleware configured")


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=format_error_response(exc))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": str(exc.detail),
            "code": "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR",
            "statusCode": exc.status_code,
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    body = {
        "success": False,
        "error": first.get("msg", "Invalid request"),
        "code": "VALIDATION_ERROR",
        "statusCode": 422,
    }
    if location:
        body["field"] = ".".join(location)
    logger.warning(f"{request.method} {request.url.path} invalid request: {body['error']}")
    return JSONResponse(status_code=422, content=body)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"{request.method} {request.url.path} integrity error: {exc.orig}")
    return JSONResponse(
        status_code=409,
        content={
            "success": False,
            "error": "The record conflicts with existing data",
            "code": "CONFLICT",
            "statusCode": 409,
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(status_code=500, content=format_error_response(exc))


# Include routers
app.include_router(api_router, prefix=settings.API_PREFIX)
logger.info("API routers included")

@app.get("/")
def root():
    """
    Root endpoint returning API information.
    """
    logger.info("Root endpoint accessed")
    return {
        "message": "Welcome to the SpecChem Safety Training API",
        "version": settings.VERSION,
        "docs_url": "/docs",
        "redoc_url": "/redoc"
    }

@app.on_event("startup")
async def startup_event():
    """
    Startup event handler. Schema changes normally go through alembic;
    AUTO_CREATE_TABLES is for local development.
    """
    logger.info("Application startup")
    if settings.AUTO_CREATE_TABLES:
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Error creating database tables: {str(e)}")
            raise

@app.on_event("shutdown")
async def shutdown_event():
    """
    Shutdown event handler.
    """
    logger.info("Application shutdown")
