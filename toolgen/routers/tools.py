"""
Tools Router - HTTP front end for the synthesis pipeline.

Endpoints:
- POST /api/generate   synthesize a tool and persist it
- GET  /api/download   download a persisted artifact
- GET  /api/files      list persisted artifacts
- GET  /api/providers  failover order, sticky provider and metrics
- POST /api/providers/diagnose   check every provider
- POST /api/reload     rebuild the pipeline from current configuration
"""

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from toolgen.ai.diagnostics import diagnose_providers, overall_status
from toolgen.ai.monitoring import configure_logging
from toolgen.core.config import get_settings
from toolgen.core.errors import (
    AllProvidersFailedError,
    ArtifactWriteError,
    ConfigurationError,
    InputError,
)
from toolgen.deps import get_pipeline, get_pipeline_holder
from toolgen.services.synthesis_pipeline import PipelineHolder, SynthesisPipeline


# ---------------------------------------------------------------------------
# LOGGER SETUP
# ---------------------------------------------------------------------------
logger = logging.getLogger("toolgen.routers.tools")


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/api", tags=["tools"])


# ---------------------------------------------------------------------------
# REQUEST/RESPONSE SCHEMAS
# ---------------------------------------------------------------------------

class GenerateRequest(BaseModel):
    """
    Request schema for /api/generate.

    Example:
    {
        "request": "a mortgage calculator with an amortization table"
    }
    """
    request: str = Field(description="Free-text description of the tool to build")


class GenerateResponse(BaseModel):
    """Response schema for /api/generate (field names kept for existing front ends)."""
    success: bool = True
    filename: str
    filepath: str
    htmlContent: str


class ProvidersResponse(BaseModel):
    use_ai: bool
    generation_available: bool
    output_dir: str
    failover: Optional[Dict[str, Any]] = None


class DiagnosticsResponse(BaseModel):
    overall_status: str
    results: List[Dict[str, Any]]


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------

def content_disposition(filename: str) -> str:
    """
    Attachment header with an ASCII fallback and an RFC 5987 UTF-8 name,
    so CJK artifact names survive the download.
    """
    ascii_name = re.sub(r"[^\x20-\x7E]", "_", filename)
    ascii_name = ascii_name.replace("\\", "\\\\").replace('"', '\\"')
    encoded = quote(filename, safe="!#$&+-.^_`|~")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{encoded}"


# ---------------------------------------------------------------------------
# ENDPOINTS
# ---------------------------------------------------------------------------

@router.post("/generate", response_model=GenerateResponse)
async def generate(
    body: GenerateRequest,
    pipeline: SynthesisPipeline = Depends(get_pipeline),
):
    """
    Build an HTML tool for the request and save it to the output directory.

    Served from a stored artifact or a canned template when possible,
    otherwise generated by the configured AI providers.
    """
    try:
        path, content = await pipeline.generate_and_save(body.request)

    except InputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    except AllProvidersFailedError as e:
        logger.error(f"Generation failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.to_dict())

    except ArtifactWriteError as e:
        logger.error(f"Failed to persist artifact: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return GenerateResponse(
        filename=path.name,
        filepath=str(path.resolve()),
        htmlContent=content,
    )


@router.get("/download")
async def download(
    file: str = Query(..., min_length=1),
    pipeline: SynthesisPipeline = Depends(get_pipeline),
):
    """Download a persisted artifact as an attachment."""
    path = pipeline.store.resolve(file)
    if path is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    return FileResponse(
        path,
        media_type="text/html; charset=utf-8",
        headers={"Content-Disposition": content_disposition(path.name)},
    )


@router.get("/files", response_model=List[str])
async def list_files(pipeline: SynthesisPipeline = Depends(get_pipeline)):
    """Names of all persisted artifacts."""
    return pipeline.store.list_names()


@router.get("/providers", response_model=ProvidersResponse)
async def providers(pipeline: SynthesisPipeline = Depends(get_pipeline)):
    """Failover order, the currently preferred provider and per-provider metrics."""
    return ProvidersResponse(**pipeline.describe())


@router.post("/providers/diagnose", response_model=DiagnosticsResponse)
async def diagnose(pipeline: SynthesisPipeline = Depends(get_pipeline)):
    """Run the staged checks for each provider and classify any failure."""
    if pipeline.executor is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No AI provider configured",
        )
    results = await diagnose_providers(pipeline.executor.providers)
    return DiagnosticsResponse(
        overall_status=overall_status(results),
        results=[result.to_dict() for result in results],
    )


@router.post("/reload", response_model=ProvidersResponse)
async def reload(holder: PipelineHolder = Depends(get_pipeline_holder)):
    """Re-read configuration and atomically replace the pipeline."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    pipeline = await holder.reload(settings)
    return ProvidersResponse(**pipeline.describe())
