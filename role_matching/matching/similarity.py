"""Cosine similarity of one role vector against many candidate vectors.

The batch is cut into SimilarityJob chunks and handed to a worker pool
(processes by default, since the math is pure-Python and CPU bound). The caller
awaits the pool; it never fires and forgets.

Whatever happens on the pool side (the pool cannot start, a worker dies, a job
raises, the timeout expires, a result comes back the wrong size) the engine logs
it and recomputes every score in the calling context with the same formula. The
result always has one integer in [0, 100] per candidate, in input order.

Jobs that time out are not killed; they finish on the pool and their result is
dropped.
"""

import asyncio
import logging
import math
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import BrokenExecutor, Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass

from role_matching.matching.errors import SimilarityWorkerError

logger = logging.getLogger(__name__)

WORKER_KIND_PROCESS = "process"
WORKER_KIND_THREAD = "thread"
WORKER_KINDS = (WORKER_KIND_PROCESS, WORKER_KIND_THREAD)

DEFAULT_CHUNK_SIZE = 64
DEFAULT_TIMEOUT_SECONDS = 30.0
# Flat results are spread and clamped into this band
DEFAULT_SPREAD_BAND = (30, 95)
DEFAULT_SPREAD_THRESHOLD = 5


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]. Returns 0 if either vector is empty or zero.

    Vectors of different length are compared on their common prefix.
    """
    if not a or not b:
        return 0.0
    n = min(len(a), len(b))
    dot = sum(a[i] * b[i] for i in range(n))
    norm_a = math.sqrt(sum(a[i] * a[i] for i in range(n)))
    norm_b = math.sqrt(sum(b[i] * b[i] for i in range(n)))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    sim = dot / (norm_a * norm_b)
    return max(-1.0, min(1.0, sim))


def similarity_to_score(sim: float) -> int:
    """Floor a cosine similarity to an integer score in [0, 100]."""
    return max(0, min(100, math.floor(sim * 100)))


def spread_flat_scores(
    scores: list[int],
    threshold: int = DEFAULT_SPREAD_THRESHOLD,
    band: tuple[int, int] = DEFAULT_SPREAD_BAND,
) -> list[int]:
    """Break near-ties so a ranking stays usable.

    When every score is within `threshold` points of the first one (typical when
    fallback embeddings dominate), score i becomes first + ((i * 7) % 11) - 5,
    clamped to `band`. The offsets are heuristic; only determinism matters.
    """
    if len(scores) < 2:
        return list(scores)
    first = scores[0]
    if any(abs(s - first) >= threshold for s in scores):
        return list(scores)
    low, high = band
    return [min(high, max(low, first + ((i * 7) % 11) - 5)) for i in range(len(scores))]


@dataclass(frozen=True)
class SimilarityJob:
    """A slice of the candidate batch scored against the reference vector."""

    reference: tuple[float, ...]
    candidates: tuple[tuple[float, ...], ...]
    offset: int


@dataclass(frozen=True)
class SimilarityResult:
    offset: int
    scores: tuple[int, ...]


def run_similarity_job(job: SimilarityJob) -> SimilarityResult:
    """Worker entry point. Module-level so process pools can pickle it."""
    scores = tuple(
        similarity_to_score(cosine_similarity(job.reference, c)) for c in job.candidates
    )
    return SimilarityResult(offset=job.offset, scores=scores)


class ParallelSimilarityEngine:
    """Scores candidate vectors against a role vector on a worker pool.

    Args:
        worker_kind: "process" or "thread"
        max_workers: Pool size (executor default if None)
        chunk_size: Candidates per job
        timeout_seconds: Upper bound for the whole dispatch
        spread_band: (low, high) clamp applied when flat scores are spread
        spread_threshold: Max distance from the first score that counts as flat
        executor_factory: Builds the pool; overrides worker_kind/max_workers
    """

    def __init__(
        self,
        worker_kind: str = WORKER_KIND_PROCESS,
        max_workers: int | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        spread_band: tuple[int, int] = DEFAULT_SPREAD_BAND,
        spread_threshold: int = DEFAULT_SPREAD_THRESHOLD,
        executor_factory: Callable[[], Executor] | None = None,
    ):
        if worker_kind not in WORKER_KINDS:
            raise ValueError(f"worker_kind must be one of {WORKER_KINDS}, got {worker_kind!r}")
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if spread_band[0] > spread_band[1]:
            raise ValueError("spread_band low must not exceed high")
        self.worker_kind = worker_kind
        self.max_workers = max_workers
        self.chunk_size = chunk_size
        self.timeout_seconds = timeout_seconds
        self.spread_band = spread_band
        self.spread_threshold = spread_threshold
        self._executor_factory = executor_factory
        self._executor: Executor | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> "ParallelSimilarityEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def _build_executor(self) -> Executor:
        if self._executor_factory is not None:
            return self._executor_factory()
        if self.worker_kind == WORKER_KIND_THREAD:
            return ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="similarity"
            )
        return ProcessPoolExecutor(max_workers=self.max_workers)

    def _get_executor(self) -> Executor:
        with self._lock:
            if self._executor is None:
                self._executor = self._build_executor()
            return self._executor

    def _discard_executor(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    def shutdown(self) -> None:
        """Release the pool. A later compute() builds a new one."""
        self._discard_executor()

    def _make_jobs(
        self, reference: Sequence[float], candidates: Sequence[Sequence[float]]
    ) -> list[SimilarityJob]:
        ref = tuple(reference)
        return [
            SimilarityJob(
                reference=ref,
                candidates=tuple(tuple(c) for c in candidates[start : start + self.chunk_size]),
                offset=start,
            )
            for start in range(0, len(candidates), self.chunk_size)
        ]

    async def _dispatch(
        self, reference: Sequence[float], candidates: Sequence[Sequence[float]]
    ) -> list[int]:
        executor = self._get_executor()
        loop = asyncio.get_running_loop()
        jobs = self._make_jobs(reference, candidates)
        futures = [loop.run_in_executor(executor, run_similarity_job, job) for job in jobs]
        results = await asyncio.wait_for(asyncio.gather(*futures), timeout=self.timeout_seconds)

        scores: list[int | None] = [None] * len(candidates)
        for result in results:
            for i, score in enumerate(result.scores):
                scores[result.offset + i] = score
        if any(s is None for s in scores):
            raise SimilarityWorkerError(
                f"Workers returned {sum(s is not None for s in scores)} of {len(scores)} scores"
            )
        return scores

    def compute_sync(
        self, reference: Sequence[float], candidates: Sequence[Sequence[float]]
    ) -> list[int]:
        """Score every candidate in the calling context (no pool)."""
        raw = [similarity_to_score(cosine_similarity(reference, c)) for c in candidates]
        return self._correct_variance(raw, reference)

    async def compute(
        self, reference: Sequence[float], candidates: Sequence[Sequence[float]]
    ) -> list[int]:
        """One score in [0, 100] per candidate, in input order. Never raises on worker trouble."""
        if not candidates:
            return []
        try:
            raw = await self._dispatch(reference, candidates)
        except Exception as e:  # any worker-side failure degrades to the in-caller path
            logger.warning(
                "Similarity workers failed for %d candidates (%s: %s); computing synchronously",
                len(candidates),
                type(e).__name__,
                e,
            )
            if isinstance(e, BrokenExecutor):
                self._discard_executor()
            raw = [similarity_to_score(cosine_similarity(reference, c)) for c in candidates]
        return self._correct_variance(raw, reference)

    def _correct_variance(self, scores: list[int], reference: Sequence[float]) -> list[int]:
        # A zero reference means "no information"; keep every score neutral.
        if not reference or not any(reference):
            return scores
        corrected = spread_flat_scores(scores, self.spread_threshold, self.spread_band)
        if corrected != scores:
            logger.debug("Spread %d near-identical similarity scores", len(scores))
        return corrected
