"""
Monitoring Module - logging and failover metrics for AI operations.

Usage:
======
    from toolgen.ai.monitoring import configure_logging, synthesis_logger

    configure_logging("INFO")
    synthesis_logger.log_route(request, route="artifact")
"""

from toolgen.ai.monitoring.logger import SynthesisLogger, configure_logging, synthesis_logger
from toolgen.ai.monitoring.metrics import FailoverMetrics, ProviderStats

__all__ = [
    "configure_logging",
    "SynthesisLogger",
    "synthesis_logger",
    "FailoverMetrics",
    "ProviderStats",
]
