#!/usr/bin/env python3
"""
Run palette extraction off the calling thread.

Every submit() starts a new request generation. Results that finish after a
newer request was submitted are dropped, so a slow extraction can never
replace the palette of a later one.
"""

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional

from extract_colors import ColorPalette, quantize


logger = logging.getLogger(__name__)


@dataclass
class ExtractionRequest:
    generation: int
    future: Future
    worker: 'ExtractionWorker'

    @property
    def superseded(self) -> bool:
        return not self.worker.is_current(self.generation)

    def result(self, timeout: Optional[float] = None) -> Optional[ColorPalette]:
        """
        Wait for the palette.

        Returns:
            The palette, or None if a newer request replaced this one

        Raises:
            ImageLoadError / ContextError from quantize, for the current request
        """
        if self.superseded:
            return None
        try:
            palette = self.future.result(timeout)
        except CancelledError:
            # A newer submit() cancels requests that were still queued
            if self.superseded:
                return None
            raise
        return None if self.superseded else palette


class ExtractionWorker:
    """Dispatches quantize() to an executor, keeping only the newest result."""

    def __init__(self, executor=None,
                 on_result: Optional[Callable[[ColorPalette], None]] = None):
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix='palette-extraction'
        )
        self.on_result = on_result
        self.generation = 0
        self.latest: Optional[ColorPalette] = None
        self._current: Optional[Future] = None
        self._lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def submit(self, raster, color_count: int) -> ExtractionRequest:
        with self._lock:
            self.generation += 1
            generation = self.generation
            previous = self._current

        # Best effort: a request still queued never needs to run
        if previous is not None:
            previous.cancel()

        future = self._executor.submit(quantize, raster, color_count)
        with self._lock:
            if generation == self.generation:
                self._current = future
        future.add_done_callback(partial(self._deliver, generation))
        return ExtractionRequest(generation=generation, future=future, worker=self)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def _deliver(self, generation: int, future: Future) -> None:
        if future.cancelled() or future.exception() is not None:
            return
        palette = future.result()
        with self._lock:
            if generation != self.generation:
                logger.debug(
                    "Dropping palette from request %d (current is %d)",
                    generation, self.generation,
                )
                return
            self.latest = palette
        if self.on_result is not None:
            self.on_result(palette)
