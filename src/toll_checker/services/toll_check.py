from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from toll_checker.providers.models import ProviderAdapter
from toll_checker.scraping.pipeline import TollCheckPipeline
from toll_checker.services.contracts import AutomationResult, ScreenshotSink, SessionProvisioner
from toll_checker.services.plate import normalize_plate
from toll_checker.utils.errors import UnknownProviderError

logger = logging.getLogger(__name__)


class TollCheckService:
    """
    What it does:
    - Single entry point for "does this plate owe anything?" across one or many providers.

    Why it matters:
    - Keeps plate validation, provider lookup and fan-out out of the CLI and out of
      the pipeline.

    Behavior:
    - The plate is normalized once; an empty plate raises InvalidPlateError before any
      browser is started.
    - Unknown provider ids raise UnknownProviderError before any browser is started.
    - check_many() runs one pipeline per provider on a thread pool. Every worker opens
      its own session, so no page is ever shared between threads.
    """

    def __init__(
        self,
        *,
        registry: Mapping[str, ProviderAdapter],
        provisioner: SessionProvisioner,
        sink: ScreenshotSink,
    ) -> None:
        self.registry = registry
        self.provisioner = provisioner
        self.sink = sink

    def check(self, plate: str, provider_id: str) -> AutomationResult:
        normalized = normalize_plate(plate)
        adapter = self._adapter(provider_id)
        return self._pipeline(adapter).run(normalized)

    def check_many(
        self,
        plate: str,
        provider_ids: Sequence[str] | None = None,
        *,
        max_workers: int = 4,
    ) -> list[AutomationResult]:
        """
        Returns results in the order of `provider_ids` (all registered providers when
        None), whatever order the workers finish in.
        """
        normalized = normalize_plate(plate)
        ids = list(provider_ids) if provider_ids else list(self.registry)
        adapters = [self._adapter(pid) for pid in ids]
        if not adapters:
            return []

        results: dict[int, AutomationResult] = {}
        workers = max(1, min(max_workers, len(adapters)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="toll-check") as pool:
            futures = {
                pool.submit(self._pipeline(adapter).run, normalized): i
                for i, adapter in enumerate(adapters)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        return [results[i] for i in range(len(adapters))]

    def _adapter(self, provider_id: str) -> ProviderAdapter:
        try:
            return self.registry[provider_id]
        except UnknownProviderError:
            raise
        except KeyError:
            raise UnknownProviderError(f"Unknown provider '{provider_id}'") from None

    def _pipeline(self, adapter: ProviderAdapter) -> TollCheckPipeline:
        return TollCheckPipeline(adapter, provisioner=self.provisioner, sink=self.sink)
