from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from soot.api.middleware import AuditMiddleware
from soot.api.v1.router import v1_router
from soot.common.logging import get_logger, setup_logging
from soot.config import settings

BASE_DIR = Path(__file__).resolve().parent

logger = get_logger("app")

MANIFEST = {
    "name": "Soot",
    "short_name": "Soot",
    "description": "Gestion des tâches et de la maison",
    "start_url": "/",
    "scope": "/",
    "display": "standalone",
    "background_color": "#ffffff",
    "theme_color": "#111827",
    "lang": "fr",
    "icons": [
        {"src": "/pwa-192x192.png", "sizes": "192x192", "type": "image/png"},
        {"src": "/pwa-512x512.png", "sizes": "512x512", "type": "image/png"},
        {"src": "/pwa-512x512.png", "sizes": "512x512", "type": "image/png", "purpose": "maskable"},
    ],
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(
    title="Soot API",
    description="Gestion des tâches et de la maison",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
origins = settings.ALLOWED_ORIGINS.split(",") if settings.ALLOWED_ORIGINS != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(AuditMiddleware)

# Generated illustrations
app.mount("/media", StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False), name="media")

# API routes
app.include_router(v1_router, prefix="/api/v1")


# --- Error envelope: every failure is {"error": "<message>"} ---


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Paramètres invalides") if errors else "Paramètres invalides"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Erreur serveur"})


# --- PWA ---


@app.get("/manifest.webmanifest", include_in_schema=False)
async def web_manifest():
    return JSONResponse(MANIFEST, media_type="application/manifest+json")


@app.get("/sw.js", include_in_schema=False)
async def service_worker():
    return FileResponse(
        BASE_DIR / "static" / "sw.js",
        media_type="application/javascript",
        headers={"Cache-Control": "no-cache", "Service-Worker-Allowed": "/"},
    )


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "soot",
        "version": "1.0.0",
        "env": settings.APP_ENV,
    }
