# Standard library
import time
import uuid
from contextlib import asynccontextmanager

# Third party
from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from yaml import dump

# Local imports
from catalog.core.auth import require_admin
from catalog.core.exceptions import register_exception_handlers
from catalog.core.logging import get_logger
import catalog.api as api


logger = get_logger(__name__)

SENSITIVE_HEADERS = ("authorization", "cookie", "x-api-key")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application startup and shutdown events"""
    logger.info("Storefront catalog API starting up...")

    # Test database connection
    try:
        from catalog.db.base import get_db_session

        session_gen = get_db_session()
        session = next(session_gen)
        session.execute(text("SELECT 1")).fetchone()
        session.close()
        logger.info("Database connection successful")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    yield

    logger.info("Storefront catalog API shutting down...")


def redact_headers(headers: dict) -> dict:
    """Copy of the request headers with credentials masked"""
    redacted = dict(headers)
    for header in SENSITIVE_HEADERS:
        if header in redacted:
            redacted[header] = "[REDACTED]"
    return redacted


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title="Storefront Catalog",
        description="Category hierarchy and product membership for the storefront catalog.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        default_response_class=JSONResponse,
    )

    # Mount Public APIs (reads)
    for name, router in api.public_routers:
        if name == "health":
            app.include_router(router, prefix="")
        else:
            app.include_router(router, prefix="/api/v1", tags=[name])

    # Mount Admin APIs (writes) with authentication
    for name, router in api.admin_routers:
        app.include_router(
            router,
            prefix="/api/v1/admin",
            tags=[f"admin-{name}"],
            dependencies=[Depends(require_admin)],
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = str(uuid.uuid4())
        start_time = time.time()
        logger.debug(f"[{request_id}] Headers: {redact_headers(request.headers)}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            # The traceback is logged by the unhandled error handler
            logger.error(
                f"[{request_id}] {request.method} {request.url.path} failed after {process_time:.4f}s: {e}"
            )
            raise

        process_time = time.time() - start_time
        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            f"[{request_id}] {request.method} {request.url.path} "
            f"{response.status_code} {process_time:.4f}s"
        )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(process_time)
        return response

    register_exception_handlers(app)

    @app.get("/openapi.yaml", include_in_schema=False)
    async def get_openapi_yaml():
        """Serve the OpenAPI specification in YAML format"""
        openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        yaml_content = dump(openapi_schema, default_flow_style=False, sort_keys=False)
        return Response(content=yaml_content, media_type="application/x-yaml")

    return app


# Create the app instance
app = create_app()
