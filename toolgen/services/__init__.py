"""
Services Module - artifact reuse, canned templates and the synthesis pipeline.
"""

from toolgen.services.artifact_store import ArtifactStore
from toolgen.services.synthesis_pipeline import PipelineHolder, SynthesisPipeline, build_pipeline
from toolgen.services.template_catalog import TemplateCatalog

__all__ = [
    "ArtifactStore",
    "TemplateCatalog",
    "SynthesisPipeline",
    "PipelineHolder",
    "build_pipeline",
]
