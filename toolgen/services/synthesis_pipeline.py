"""
Synthesis Pipeline - turns a free-text request into an HTML tool.

Decision sequence (fixed):
==========================
```
request
   │
   ▼
┌──────────────────┐  hit
│  ArtifactStore   │ ─────► stored HTML
└────────┬─────────┘
         │ miss
         ▼
┌──────────────────┐  hit
│ TemplateCatalog  │ ─────► canned template
└────────┬─────────┘
         │ miss
         ▼
┌──────────────────┐
│ FailoverExecutor │ ─────► generated HTML, or AllProvidersFailedError
└──────────────────┘
```

Once generation has been attempted, failure is surfaced to the caller;
there is no fallback to a generic template.
"""

import asyncio
import logging
import time
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Optional, Set, Tuple

from toolgen.ai.failover import FailoverExecutor
from toolgen.ai.monitoring import synthesis_logger
from toolgen.ai.providers import build_providers
from toolgen.core.config import Settings
from toolgen.core.errors import ConfigurationError, InputError
from toolgen.services.artifact_store import ArtifactStore
from toolgen.services.template_catalog import TemplateCatalog

logger = logging.getLogger("toolgen.services.synthesis")

# Seconds a replaced pipeline may keep serving running requests before it is closed
DRAIN_TIMEOUT = 300.0


class SynthesisPipeline:
    """
    Routes a request to reuse, a template, or generation.

    Usage:
        pipeline = SynthesisPipeline(store, catalog, executor)
        html = await pipeline.synthesize("a BMI calculator with charts")
    """

    def __init__(
        self,
        store: ArtifactStore,
        catalog: TemplateCatalog,
        executor: Optional[FailoverExecutor] = None,
        use_ai: bool = True,
    ):
        self.store = store
        self.catalog = catalog
        self.executor = executor
        self.use_ai = use_ai
        self._active = 0
        self._active_lock = Lock()

    @property
    def generation_available(self) -> bool:
        return self.use_ai and self.executor is not None

    @property
    def active_requests(self) -> int:
        with self._active_lock:
            return self._active

    def _track(self, delta: int) -> None:
        with self._active_lock:
            self._active += delta

    async def synthesize(self, request: str) -> str:
        """
        Produce HTML content for the request.

        Raises:
            InputError: blank request
            ConfigurationError: generation needed but disabled or unconfigured
            AllProvidersFailedError: every provider failed
        """
        self._track(1)
        try:
            return await self._route(request)
        finally:
            self._track(-1)

    async def _route(self, request: str) -> str:
        if request is None or not request.strip():
            raise InputError("Request must not be empty")

        content = self._find_artifact(request)
        if content is not None:
            synthesis_logger.log_route(request, route="artifact")
            return content

        content = self._match_template(request)
        if content is not None:
            synthesis_logger.log_route(request, route="template")
            return content

        if not self.generation_available:
            reason = "disabled (USE_AI=false)" if not self.use_ai else "not configured (no provider API key)"
            raise ConfigurationError(
                f"AI generation is unavailable: {reason}. "
                "Check the AI configuration or try again later."
            )

        synthesis_logger.log_route(request, route="generation", detail=" -> ".join(self.executor.provider_names))
        return await self.executor.generate(request)

    async def generate_and_save(
        self,
        request: str,
        now: Optional[datetime] = None,
    ) -> Tuple[Path, str]:
        """Synthesize and persist under the artifact naming contract."""
        content = await self.synthesize(request)
        path = self.store.save(request, content, now=now)
        return path, content

    def _find_artifact(self, request: str) -> Optional[str]:
        try:
            return self.store.find(request)
        except Exception as e:
            logger.warning(f"Artifact store failed, treating as miss: {e}")
            return None

    def _match_template(self, request: str) -> Optional[str]:
        try:
            return self.catalog.match(request)
        except Exception as e:
            logger.warning(f"Template catalog failed, treating as miss: {e}")
            return None

    async def drain(self, timeout: float, poll_interval: float = 0.05) -> bool:
        """Wait until no request is running; False if the timeout ran out first."""
        deadline = time.monotonic() + timeout
        while self.active_requests:
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(poll_interval)
        return True

    async def close(self) -> None:
        if self.executor is not None:
            await self.executor.close()

    def describe(self) -> dict:
        return {
            "output_dir": str(self.store.output_dir),
            "use_ai": self.use_ai,
            "generation_available": self.generation_available,
            "failover": self.executor.to_dict() if self.executor else None,
        }


def build_pipeline(settings: Settings) -> SynthesisPipeline:
    """Construct a pipeline and all of its collaborators from settings."""
    store = ArtifactStore(settings.OUTPUT_DIR)
    catalog = TemplateCatalog()

    executor = None
    if not settings.USE_AI:
        logger.warning("AI generation disabled (USE_AI=false); serving artifacts and templates only")
    else:
        providers = build_providers(settings)
        if providers:
            executor = FailoverExecutor(providers)
        else:
            logger.warning("No AI provider configured; create a .env file with at least one API key")

    return SynthesisPipeline(store, catalog, executor, use_ai=settings.USE_AI)


class PipelineHolder:
    """
    Owns the live pipeline and swaps it atomically on reconfiguration.

    Callers read current() once per request. A replaced pipeline keeps
    serving the requests already running on it; its providers are closed
    in the background once those finish (or DRAIN_TIMEOUT runs out).
    """

    def __init__(self, pipeline: SynthesisPipeline, drain_timeout: float = DRAIN_TIMEOUT):
        self._pipeline = pipeline
        self._lock = Lock()
        self._drain_timeout = drain_timeout
        self._retiring: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineHolder":
        return cls(build_pipeline(settings))

    def current(self) -> SynthesisPipeline:
        with self._lock:
            return self._pipeline

    def swap(self, pipeline: SynthesisPipeline) -> SynthesisPipeline:
        """Install a new pipeline and return the previous one."""
        with self._lock:
            previous, self._pipeline = self._pipeline, pipeline
        return previous

    async def reload(self, settings: Settings) -> SynthesisPipeline:
        """Rebuild from settings, swap it in, and retire the old pipeline."""
        pipeline = build_pipeline(settings)
        previous = self.swap(pipeline)

        task = asyncio.create_task(self._retire(previous))
        self._retiring.add(task)
        task.add_done_callback(self._retiring.discard)

        logger.info("Pipeline reloaded")
        return pipeline

    async def _retire(self, pipeline: SynthesisPipeline) -> None:
        if not await pipeline.drain(self._drain_timeout):
            logger.warning(
                f"{pipeline.active_requests} request(s) still running on the replaced pipeline, closing it anyway"
            )
        await pipeline.close()

    async def wait_retired(self) -> None:
        """Wait until every replaced pipeline has been closed."""
        if self._retiring:
            await asyncio.gather(*list(self._retiring))

    async def close(self) -> None:
        await self.wait_retired()
        await self.current().close()
