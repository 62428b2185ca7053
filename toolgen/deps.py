"""
Dependencies - FastAPI dependency providers shared by the routers.
"""

from fastapi import Request

from toolgen.services.synthesis_pipeline import PipelineHolder, SynthesisPipeline


def get_pipeline_holder(request: Request) -> PipelineHolder:
    """The holder created by the application lifespan."""
    return request.app.state.pipeline_holder


def get_pipeline(request: Request) -> SynthesisPipeline:
    """
    The pipeline current at the start of this request.

    Read once so a concurrent reload cannot switch pipelines mid-request.
    """
    return get_pipeline_holder(request).current()
