from __future__ import annotations

import queue
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Optional

from .logging_utils import get_logger
from .models import QueryRequest, ResultItem
from .providers import Provider, ProviderRegistry

logger = get_logger("dispatcher")


class QueryDispatcher:
    """Fans a query out to the requested providers and merges their results.

    Every provider runs in its own worker and pushes its whole batch once
    into a queue owned by the request. Batches are concatenated in request
    order before the stable sort, so ties never depend on which provider
    finished first.
    """

    def __init__(self, registry: ProviderRegistry, timeout: Optional[float] = None):
        self.registry = registry
        self.timeout = timeout

    def targets(self, request: QueryRequest) -> List[Provider]:
        # Unknown provider names are ignored
        return [p for p in (self.registry.get(n) for n in request.providers) if p is not None]

    def dispatch(self, request: QueryRequest) -> List[ResultItem]:
        providers = self.targets(request)
        if not providers:
            return []

        batches: queue.Queue = queue.Queue()

        def run(position: int, provider: Provider) -> None:
            try:
                items = provider.query(request.query)
            except Exception:
                logger.exception(f"Provider '{provider.name}' failed for query '{request.query}'")
                return
            batches.put((position, items))

        start_time = time.time()
        executor = ThreadPoolExecutor(max_workers=len(providers), thread_name_prefix="provider")
        futures = {
            executor.submit(run, position, provider): position
            for position, provider in enumerate(providers)
        }
        done, pending = wait(futures, timeout=self.timeout)
        # Stragglers keep running in the background but are not waited for
        executor.shutdown(wait=False)

        for future in pending:
            logger.warning(
                f"Provider '{providers[futures[future]].name}' missed the {self.timeout}s deadline, dropping its results"
            )

        finished = {futures[future] for future in done}
        collected = {}
        while True:
            try:
                position, items = batches.get_nowait()
            except queue.Empty:
                break
            if position in finished:
                collected[position] = items

        results: List[ResultItem] = []
        for position in sorted(collected):
            results.extend(collected[position])
        results.sort(key=lambda item: item.score, reverse=True)

        logger.debug(f"Merged {len(results)} results from {len(collected)} providers "
                     f"in {(time.time() - start_time) * 1000:.1f}ms")
        return results
