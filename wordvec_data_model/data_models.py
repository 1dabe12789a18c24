from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class WordEmbeddingModel(BaseModel):
    """Model for a single word and its embedding"""
    word: str = Field(..., description="The looked up word")
    vector: List[float] = Field(..., description="Embedding vector")


class WordsRequest(BaseModel):
    """Request model for batch lookups and averaging"""
    words: List[str] = Field(..., description="Ordered list of words")


class BatchEmbeddingResponse(BaseModel):
    """Response model for batch lookups"""
    embeddings: Dict[str, List[float]] = Field(..., description="Embedding per requested word")


class SimilarRequest(BaseModel):
    """Request model for nearest-neighbour search"""
    vector: List[float] = Field(..., description="Query vector")


class SimilarityResultModel(BaseModel):
    """Model for SimilarityResult API representation"""
    found: bool = Field(..., description="Whether a non-identical match exists")
    word: Optional[str] = Field(None, description="Matching word")
    score: float = Field(..., description="Cosine similarity of the match")
    vector: Optional[List[float]] = Field(None, description="Matching vector")


class VectorResponse(BaseModel):
    """Response model for an aggregated vector"""
    vector: List[float] = Field(..., description="Averaged vector")
