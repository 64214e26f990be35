"""Embedding-driven boundary and coherence analysis."""

from chunkwise.analysis.boundary_detector import SemanticBoundaryDetector
from chunkwise.analysis.coherence_analyzer import ChunkCoherenceAnalyzer, split_sentences

__all__ = ["ChunkCoherenceAnalyzer", "SemanticBoundaryDetector", "split_sentences"]
