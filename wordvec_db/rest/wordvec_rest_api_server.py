import asyncio
import logging
from functools import wraps
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST, Counter, Histogram

from wordvec_data_model.data_models import WordEmbeddingModel, WordsRequest, BatchEmbeddingResponse, \
    SimilarRequest, SimilarityResultModel, VectorResponse
from wordvec_db.config import get_settings
from wordvec_db.engine.embedding_session import EmbeddingSession
from wordvec_exception_model.exception import NoEmbeddingFoundError, EmptyInputException, \
    VectorDimensionMismatchException, NullOrZeroVectorException, ChecksumValidationFailureError

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], EmbeddingSession]


class WordvecRestAPI:
    """
    WordvecRestAPI: HTTP Interface for a word embedding store

    Read-only access to an embedding database built with ``wordvec build``.

    Base URL:
        http://127.0.0.1:8000

    ---

    Health & Readiness
    ------------------

        curl http://127.0.0.1:8000/healthz
        curl http://127.0.0.1:8000/readyz

    ---

    Lookup
    ------

    1. Single word:
        GET /words/{word}

        curl http://127.0.0.1:8000/words/king

    2. Batch:
        POST /words/batch

        curl -X POST http://127.0.0.1:8000/words/batch \
             -H "Content-Type: application/json" \
             -d '{"words": ["king", "queen"]}'

    ---

    Similarity
    ----------

    POST /similar

        curl -X POST http://127.0.0.1:8000/similar \
             -H "Content-Type: application/json" \
             -d '{"vector": [0.9, 0.1, 0.0]}'

    ---

    Phrase averaging
    ----------------

    POST /average

        curl -X POST http://127.0.0.1:8000/average \
             -H "Content-Type: application/json" \
             -d '{"words": ["new", "york"]}'

    ---

    Metrics (Prometheus)
    ---------------------

    GET /metrics

    ---

    Sessions are not shared between requests: every request opens its own session
    through ``session_factory`` and closes it before returning.
    """
    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory or EmbeddingSession.open

        self.app = FastAPI(
            title="Wordvec Embedding API",
            description="RESTful API for word embedding lookup and similarity search",
            version="1.0.0",
        )

        # Liveness probe: indicates the app is up
        @self.app.get("/healthz", include_in_schema=False)
        async def healthz():
            return JSONResponse({"status": "ok"})

        # Readiness probe: the store can be opened and queried
        @self.app.get("/readyz", include_in_schema=False)
        async def readyz():
            try:
                count = await asyncio.to_thread(self._run, lambda s: s.count())
            except Exception as e:
                logger.warning(f"Readiness check failed: {e}")
                raise HTTPException(status_code=503, detail="not ready")
            return JSONResponse({"status": "ready", "words": count})

        self.lookup_counter = Counter('wordvec_lookup_total', 'Total number of word lookups')
        self.similar_counter = Counter('wordvec_similar_total', 'Total number of similarity searches')
        self.average_counter = Counter('wordvec_average_total', 'Total number of phrase averages')
        self.lookup_latency = Histogram('wordvec_lookup_latency', 'Word lookup latency')
        self.similar_latency = Histogram('wordvec_similar_latency', 'Similarity search latency')
        self.average_latency = Histogram('wordvec_average_latency', 'Phrase average latency')

        self._setup_routes()

    def _run(self, operation):
        """Run ``operation`` with a session owned by the calling thread."""
        with self._session_factory() as session:
            return operation(session)

    async def _call(self, operation):
        return await asyncio.to_thread(self._run, operation)

    def _setup_routes(self):
        """Setup FastAPI routes"""

        def with_error_handling():
            """
            Decorator factory to wrap route handlers in shared exception logic.
            Not-found errors become 404, invalid input 400, corrupted rows 500.
            """

            def decorator(func):
                @wraps(func)
                async def wrapper(*args, **kwargs):
                    try:
                        return await func(*args, **kwargs)
                    except NoEmbeddingFoundError as e:
                        raise HTTPException(status_code=404, detail=f"No embedding found: {e}")
                    except (EmptyInputException, VectorDimensionMismatchException,
                            NullOrZeroVectorException) as e:
                        raise HTTPException(status_code=400, detail=str(e))
                    except ChecksumValidationFailureError as e:
                        logger.error(f"Corrupted embedding row: {e}")
                        raise HTTPException(status_code=500, detail=f"Checksum validation failed: {e}")
                return wrapper
            return decorator

        @self.app.get("/words/{word}", response_model=WordEmbeddingModel)
        @with_error_handling()
        async def get_word(word: str):
            self.lookup_counter.inc()

            with self.lookup_latency.time():
                vector = await self._call(lambda s: s.embedding_vector(word))
                return WordEmbeddingModel(word=word, vector=vector.tolist())

        @self.app.post("/words/batch", response_model=BatchEmbeddingResponse)
        @with_error_handling()
        async def get_words(request: WordsRequest):
            self.lookup_counter.inc(len(request.words))

            with self.lookup_latency.time():
                vectors = await self._call(lambda s: s.embedding_vectors(request.words))
                return BatchEmbeddingResponse(embeddings={w: v.tolist() for w, v in vectors.items()})

        @self.app.post("/similar", response_model=SimilarityResultModel)
        @with_error_handling()
        async def similar(request: SimilarRequest):
            self.similar_counter.inc()

            with self.similar_latency.time():
                result = await self._call(lambda s: s.most_similar_word(request.vector))
                return SimilarityResultModel(**result.to_dict())

        @self.app.post("/average", response_model=VectorResponse)
        @with_error_handling()
        async def average(request: WordsRequest):
            self.average_counter.inc()

            with self.average_latency.time():
                vector = await self._call(lambda s: s.multi_word_embedding_vector(request.words))
                return VectorResponse(vector=vector.tolist())

        @self.app.get("/metrics")
        async def metrics():
            data = await asyncio.to_thread(generate_latest)
            return Response(content=data, media_type=CONTENT_TYPE_LATEST)


def create_app() -> FastAPI:
    """Application factory for ``uvicorn --factory``."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    return WordvecRestAPI().app
