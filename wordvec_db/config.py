from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from wordvec_data_model.index_packets import EmbeddingSchema
from wordvec_data_model.vector_codec import ByteOrder


class WordvecSettings(BaseSettings):
    db_path: str = "wordvec.db"
    dim: int = 300
    byte_order: ByteOrder = ByteOrder.BIG
    table_name: str = "fasttext"
    checksum_algorithm: str = "crc32"
    channel_capacity: int = 1024
    batch_size: int = 10000
    in_memory: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="WORDVEC_")


@lru_cache(maxsize=1)
def get_settings() -> WordvecSettings:
    return WordvecSettings()


def schema_from_settings(settings: Optional[WordvecSettings] = None) -> EmbeddingSchema:
    """Build the per-store schema from settings."""
    settings = settings or get_settings()
    return EmbeddingSchema(
        dim=settings.dim,
        byte_order=settings.byte_order,
        table_name=settings.table_name,
        checksum_algorithm=settings.checksum_algorithm,
    )
