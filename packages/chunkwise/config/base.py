# chunkwise/config/base.py

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingSettings(BaseSettings):
    """
    Engine-wide chunking settings.

    Values can be overridden through ``CHUNKWISE_``-prefixed environment
    variables or a ``.env`` file. Instances are created by the caller and
    passed to the registry builder and use cases.
    """

    # Option defaults
    DEFAULT_STRATEGY: str = "Auto"
    DEFAULT_MAX_CHUNK_SIZE: int = Field(default=1024, gt=0)
    DEFAULT_OVERLAP_SIZE: int = Field(default=128, ge=0)

    # Strategy used when an unknown name is requested; empty disables the fallback
    FALLBACK_STRATEGY: str = "FixedSize"

    # Semantic boundary classification
    BOUNDARY_SIMILARITY_THRESHOLD: float = Field(default=0.7, ge=0.0, le=1.0)
    TOPIC_CHANGE_THRESHOLD: float = Field(default=0.5, ge=0.0, le=1.0)
    EMBEDDING_BATCH_SIZE: int = Field(default=32, gt=0)

    # Auto selection
    NUMBERED_SECTION_THRESHOLD: int = Field(default=5, gt=0)
    HEADING_THRESHOLD: int = Field(default=3, gt=0)
    CJK_RATIO_THRESHOLD: float = Field(default=0.3, ge=0.0, le=1.0)
    CJK_MIN_MULTIPLIER: float = Field(default=0.15, gt=0.0, le=1.0)
    AUTO_CONFIDENCE_THRESHOLD: float = Field(default=0.6, ge=0.0, le=1.0)

    # Quality analysis
    COMPLETENESS_THRESHOLD: float = Field(default=0.7, ge=0.0, le=1.0)
    CONSISTENCY_THRESHOLD: float = Field(default=0.65, ge=0.0, le=1.0)
    BOUNDARY_QUALITY_THRESHOLD: float = Field(default=0.75, ge=0.0, le=1.0)

    # Benchmarking
    BENCHMARK_MAX_PARALLELISM: int = Field(default=4, gt=0)
    BENCHMARK_QUALITY_TOLERANCE: float = Field(default=0.05, ge=0.0, le=1.0)

    model_config = SettingsConfigDict(env_prefix="CHUNKWISE_", env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def fallback_strategy(self) -> str | None:
        return self.FALLBACK_STRATEGY.strip() or None
