import logging

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.errors import register_error_handlers
from app.routers import attom, documents, mapbox, persona, places, upload

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


class NoContentCORSMiddleware(CORSMiddleware):
    """CORS middleware that answers successful preflights with 204 No Content."""

    def preflight_response(self, request_headers):
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            k: v for k, v in response.headers.items()
            if k.lower() not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)


app = FastAPI(
    title=settings.app_name,
    description="Proxy endpoints and document extraction for the real-estate marketplace",
    version="1.0.0",
)

# CORS configuration
app.add_middleware(
    NoContentCORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
app.include_router(mapbox.router, prefix="/api/mapbox", tags=["Mapbox"])
app.include_router(places.router, prefix="/api/places", tags=["Places"])
app.include_router(persona.router, prefix="/api/persona", tags=["Persona"])
app.include_router(upload.router, prefix="/api/upload", tags=["Upload"])
app.include_router(attom.router, prefix="/api/attom", tags=["ATTOM"])
app.include_router(documents.router, prefix="/api/documents", tags=["Documents"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": settings.app_name}


@app.options("/api/{path:path}", include_in_schema=False)
async def options_no_content(path: str):
    return Response(status_code=204)
