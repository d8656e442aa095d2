"""Study guide pipeline: scope locking, generation and normalization."""
from .evidence_gatherer import EvidenceGatherer
from .orchestrator import GuideGenerationOrchestrator

__all__ = [
    "EvidenceGatherer",
    "GuideGenerationOrchestrator"
]
