"""
SiteScene REST API - FastAPI Application.

Exposes one site session to a web front-end.

Endpoints:
    GET  /                   - API info and health check
    GET  /session            - Session state and last error
    GET  /metrics            - Current site metrics
    GET  /scene              - Current scene description and view state
    PUT  /parameters         - Update zoning parameters
    POST /dataset/default    - Load the built-in sample site
    POST /dataset/upload     - Load an uploaded .geojson document
    GET  /dataset/download   - Download the loaded dataset
    POST /pointer            - Resolve a pointer event into a tooltip

Usage:
    uvicorn sitescene.api.main:app --reload --port 8000
"""

import logging
from dataclasses import asdict
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .. import __version__
from ..core.config import settings
from ..core.errors import SiteSceneError, UnsupportedFileTypeError
from ..session.controller import FileReadResult, PointerEvent, SessionController
from ..utils.logging_config import setup_logging
from ..visualization.scene_assembler import MarkerRecord

logger = logging.getLogger(__name__)


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class ParametersRequest(BaseModel):
    """Partial zoning parameter update."""
    lot_coverage_percent: Optional[float] = Field(None, description="Lot coverage (%)", examples=[50])
    floor_count: Optional[int] = Field(None, description="Number of floors", examples=[10])
    floor_height: Optional[float] = Field(None, description="Floor height (m)", examples=[3.0])


class UploadRequest(BaseModel):
    """Completed client-side file read."""
    filename: str = Field(..., examples=["site.geojson"])
    content: str = Field(..., description="File text")


class PointerRequest(BaseModel):
    """Pointer event from the renderer."""
    x: float
    y: float
    coordinate: List[float] = Field(..., min_length=2, description="[lon, lat] under the pointer")
    viewport_longitude: float
    kind: str = Field("hover", pattern="^(hover|click)$")
    marker_index: Optional[int] = Field(None, description="Index of the picked marker")


# =============================================================================
# APPLICATION
# =============================================================================

def _error_status(error: SiteSceneError) -> int:
    if isinstance(error, UnsupportedFileTypeError):
        return 415
    return 400


def _raise_last_error(controller: SessionController) -> None:
    error = controller.last_error
    if error is not None:
        raise HTTPException(
            status_code=_error_status(error),
            detail={
                "error": error.kind,
                "message": str(error),
                "field": error.field,
                "suggestions": error.suggestions,
            },
        )
    raise HTTPException(status_code=500, detail="Operation failed")


def _session_payload(controller: SessionController) -> dict:
    snapshot = controller.snapshot
    return {
        "state": controller.state.value,
        "generation": snapshot.generation if snapshot else 0,
        "source_name": snapshot.dataset.source_name if snapshot else None,
        "parameters": controller.parameters.model_dump(),
        "last_error": (
            {"error": controller.last_error.kind, "message": str(controller.last_error)}
            if controller.last_error else None
        ),
    }


def create_app(controller: Optional[SessionController] = None) -> FastAPI:
    """
    Build the API around a session controller.

    Without a controller, a fresh session is created with the sample site loaded.
    """
    if controller is None:
        controller = SessionController()
        controller.load_default()

    app = FastAPI(
        title="SiteScene API",
        description="Site metrics and 3D scene assembly",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.controller = controller

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/", tags=["General"])
    async def root():
        """API info and health check."""
        return {
            "name": "SiteScene API",
            "version": __version__,
            "status": "healthy",
            "endpoints": {
                "session": "GET /session",
                "metrics": "GET /metrics",
                "scene": "GET /scene",
                "update_parameters": "PUT /parameters",
                "load_default": "POST /dataset/default",
                "upload": "POST /dataset/upload",
                "download": "GET /dataset/download",
                "pointer": "POST /pointer",
            },
            "documentation": "/docs",
        }

    @app.get("/health", tags=["General"])
    async def health_check():
        return {"status": "healthy", "version": __version__}

    @app.get("/session", tags=["Session"])
    def get_session():
        return _session_payload(controller)

    @app.get("/metrics", tags=["Session"])
    def get_metrics():
        metrics = controller.metrics
        if metrics is None:
            raise HTTPException(status_code=404, detail="No dataset loaded")
        return metrics.to_dict()

    @app.get("/scene", tags=["Session"])
    def get_scene():
        snapshot = controller.snapshot
        if snapshot is None:
            raise HTTPException(status_code=404, detail="No dataset loaded")
        return {
            "generation": snapshot.generation,
            "scene": snapshot.scene.to_dict(),
            "view_state": asdict(snapshot.view_state),
        }

    @app.put("/parameters", tags=["Session"])
    def update_parameters(request: ParametersRequest):
        update = request.model_dump(exclude_none=True)
        before = controller.last_error
        snapshot = controller.update_parameters(update)
        if snapshot is None and controller.last_error is not None and controller.last_error is not before:
            _raise_last_error(controller)
        return _session_payload(controller)

    @app.post("/dataset/default", tags=["Dataset"])
    def load_default():
        if controller.load_default() is None:
            _raise_last_error(controller)
        return _session_payload(controller)

    @app.post("/dataset/upload", tags=["Dataset"])
    def upload_dataset(request: UploadRequest):
        upload = FileReadResult(filename=request.filename, text=request.content)
        if controller.load_upload(upload) is None:
            _raise_last_error(controller)
        return _session_payload(controller)

    @app.get("/dataset/download", tags=["Dataset"])
    def download_dataset():
        payload = controller.export_dataset()
        if payload is None:
            raise HTTPException(status_code=404, detail="No dataset loaded")
        filename = controller.dataset.source_name or "site.geojson"
        return Response(
            content=payload,
            media_type="application/geo+json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post("/pointer", tags=["Interaction"])
    def pointer(request: PointerRequest):
        picked: Optional[MarkerRecord] = None
        if request.marker_index is not None:
            scene = controller.scene
            if scene is None or not 0 <= request.marker_index < len(scene.markers):
                raise HTTPException(status_code=404, detail="Marker not found")
            picked = scene.markers[request.marker_index]

        result = controller.handle_pointer(PointerEvent(
            x=request.x,
            y=request.y,
            coordinate=(request.coordinate[0], request.coordinate[1]),
            viewport_longitude=request.viewport_longitude,
            picked=picked,
            kind=request.kind,
        ))
        if result is None:
            _raise_last_error(controller)
        return {
            "coordinate": list(result.coordinate),
            "tooltip": (
                {"x": result.tooltip.x, "y": result.tooltip.y, "text": result.tooltip.text}
                if result.tooltip else None
            ),
        }

    return app


app = create_app()


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

def main():
    """Run the API server."""
    import uvicorn

    setup_logging()
    uvicorn.run(
        "sitescene.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )
    return 0


if __name__ == "__main__":
    import sys
    sys.exit(main())
