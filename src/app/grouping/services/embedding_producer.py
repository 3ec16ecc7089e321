import asyncio
import logging
import os
from typing import List, Optional, Sequence

from app.common.models import EmbeddingResult
from app.config import EmbeddingConfig
from app.grouping.extractors.base import EmbeddingExtractor
from app.grouping.model_loader import EmbeddingCache

logger = logging.getLogger(__name__)


class EmbeddingProducer:
    """
    Turns photo paths into embeddings through the shared extractor.

    Every input path yields exactly one EmbeddingResult, in input order.
    Per-image failures are recorded on the result; only failing to acquire
    the extractor itself aborts the batch.
    """

    def __init__(self, cache: EmbeddingCache, config: Optional[EmbeddingConfig] = None):
        self.cache = cache
        self.config = config or EmbeddingConfig()

    async def produce(self, paths: Sequence[str]) -> List[EmbeddingResult]:
        if not paths:
            return []

        extractor = await self.cache.acquire()
        semaphore = asyncio.Semaphore(max(1, self.config.max_concurrency))

        tasks = [self._embed_one(extractor, path, semaphore) for path in paths]
        results = await asyncio.gather(*tasks)

        failed = sum(1 for r in results if not r.ok)
        if failed:
            logger.warning(f"Embedding finished with {failed}/{len(results)} failures.")
        else:
            logger.info(f"Embedded {len(results)} photos.")
        return list(results)

    async def _embed_one(
        self, extractor: EmbeddingExtractor, path: str, semaphore: asyncio.Semaphore
    ) -> EmbeddingResult:
        if not os.path.exists(path):
            logger.warning(f"Skipping missing file: {path}")
            return EmbeddingResult(path=path, error=f"File not found: {path}")

        async with semaphore:
            try:
                embedding = await asyncio.to_thread(extractor.extract, path)
            except Exception as e:
                logger.warning(f"Failed to embed {path}: {e}")
                return EmbeddingResult(path=path, error=str(e) or e.__class__.__name__)

        return EmbeddingResult(path=path, embedding=embedding)
