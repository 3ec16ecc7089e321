import asyncio
import logging
from enum import Enum
from functools import lru_cache
from typing import Callable, Optional

from app.common.errors import EmbeddingModelError
from app.grouping.extractors.base import EmbeddingExtractor

logger = logging.getLogger(__name__)


class CacheState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class EmbeddingCache:
    """
    Holds the one embedding extractor of the process.

    Construction is single-flight: callers that arrive while it is in
    progress wait on the same task and observe the same outcome. A failed
    attempt resets the cache to UNINITIALIZED so the next caller retries;
    once READY the extractor is handed out as-is for the process lifetime.
    """

    def __init__(self, factory: Callable[[], EmbeddingExtractor]):
        self._factory = factory
        self._extractor: Optional[EmbeddingExtractor] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> CacheState:
        if self._extractor is not None:
            return CacheState.READY
        if self._task is not None:
            return CacheState.INITIALIZING
        return CacheState.UNINITIALIZED

    async def acquire(self) -> EmbeddingExtractor:
        """
        Returns the ready extractor, constructing it on first use.

        Raises:
            EmbeddingModelError: if the construction this caller waited on failed.
        """
        if self._extractor is not None:
            return self._extractor

        task = self._ensure_task()
        # A cancelled caller must not cancel the construction other callers share.
        return await asyncio.shield(task)

    def warm_up(self) -> None:
        """Starts construction in the background without waiting for it."""
        if self._extractor is None:
            self._ensure_task()

    def _ensure_task(self) -> asyncio.Task:
        if self._task is None:
            logger.info("Initializing embedding extractor for the first time.")
            self._task = asyncio.get_running_loop().create_task(self._construct())
            self._task.add_done_callback(self._retrieve_outcome)
        return self._task

    async def _construct(self) -> EmbeddingExtractor:
        try:
            extractor = await asyncio.to_thread(self._factory)
            self._extractor = extractor
        except Exception as e:
            logger.error(f"Embedding extractor initialization failed: {e}", exc_info=True)
            raise EmbeddingModelError(f"Failed to initialize embedding model: {e}") from e
        finally:
            self._task = None

        logger.info(f"Embedding extractor ready ({extractor.__class__.__name__}).")
        return extractor

    @staticmethod
    def _retrieve_outcome(task: asyncio.Task) -> None:
        # Marks a background warm-up failure as retrieved; it is already logged.
        if not task.cancelled():
            task.exception()


def _build_clip_extractor() -> EmbeddingExtractor:
    from app.grouping.extractors.clip import ClipExtractor

    return ClipExtractor()


@lru_cache()
def get_embedding_cache() -> EmbeddingCache:
    """Process-wide EmbeddingCache backed by the CLIP extractor."""
    return EmbeddingCache(_build_clip_extractor)
