"""Readiness gate: model loading plus the exclusive hold used as the run lock."""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from ..exceptions import BusyError, EngineInitFailed, LoadError, NotReadyError
from ..models.session import GateState
from ..transcription.base import AbstractInferenceEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReadinessGate:
    """Tracks whether an engine has a model loaded and owns the exclusive hold.

    The state is an explicit ``GateState`` changed only through
    compare-and-swap transitions under one lock. ``is_ready()`` is true only
    in READY, so "no model" (IDLE) and "busy" (BUSY) both read as not ready
    while staying distinguishable through ``state``.
    """

    def __init__(self,
                 engine_factory: Callable[[], AbstractInferenceEngine],
                 model_locator: Callable[[], str],
                 on_change: Optional[Callable[[GateState], None]] = None):
        """
        Args:
            engine_factory: Builds an engine with no model loaded
            model_locator: Returns the model reference to load; raises NoModelFound
            on_change: Called with the new state after every transition
        """
        self._engine_factory = engine_factory
        self._model_locator = model_locator
        self._on_change = on_change
        self._lock = threading.Lock()
        self._state = GateState.IDLE
        self._loading = False
        self._engine: Optional[AbstractInferenceEngine] = None
        self.model_ref: Optional[str] = None

    @property
    def state(self) -> GateState:
        with self._lock:
            return self._state

    @property
    def engine(self) -> Optional[AbstractInferenceEngine]:
        return self._engine

    def is_ready(self) -> bool:
        """Pure read of the readiness signal."""
        with self._lock:
            return self._state is GateState.READY

    def _notify(self, state: GateState) -> None:
        if self._on_change:
            self._on_change(state)

    def initialize(self) -> str:
        """Discover and load a model.

        Returns:
            The loaded model reference

        Raises:
            BusyError: If a run holds the gate or a load is already in progress
            NoModelFound: If discovery finds nothing
            EngineInitFailed: If the engine raises while loading
        """
        with self._lock:
            if self._state is GateState.BUSY or self._loading:
                raise BusyError()
            self._loading = True
            previous, self._state = self._state, GateState.IDLE
            old_engine, self._engine = self._engine, None
        if previous is not GateState.IDLE:
            self._notify(GateState.IDLE)

        try:
            if old_engine is not None:
                logger.info("Releasing previously loaded engine before reload")
                old_engine.release()

            model_ref = self._model_locator()
            try:
                engine = self._engine_factory()
                engine.load_model(model_ref)
            except LoadError:
                raise
            except Exception as e:
                logger.error(f"Engine initialization failed: {e}", exc_info=True)
                raise EngineInitFailed(e) from e
        finally:
            with self._lock:
                self._loading = False

        with self._lock:
            self._engine = engine
            self.model_ref = model_ref
            self._state = GateState.READY
        logger.info(f"Engine ready with model {model_ref}")
        self._notify(GateState.READY)
        return model_ref

    def acquire(self) -> GateState:
        """Compare-and-swap READY -> BUSY.

        Returns:
            The prior state, to hand back to ``release``

        Raises:
            BusyError: If another holder is active (never queued)
            NotReadyError: If no model is loaded
        """
        with self._lock:
            if self._state is GateState.BUSY:
                raise BusyError()
            if self._state is not GateState.READY or self._loading:
                raise NotReadyError()
            prior, self._state = self._state, GateState.BUSY
        self._notify(GateState.BUSY)
        return prior

    def release(self, prior: GateState = GateState.READY) -> None:
        """Compare-and-swap BUSY -> ``prior``; a no-op when not held."""
        with self._lock:
            if self._state is not GateState.BUSY:
                logger.warning(f"Release called while gate is {self._state.value}")
                return
            self._state = prior
        self._notify(prior)

    @contextmanager
    def hold(self) -> Iterator[AbstractInferenceEngine]:
        """Exclusive hold for the duration of the block, restored even on error."""
        prior = self.acquire()
        try:
            yield self._engine
        finally:
            self.release(prior)

    def with_exclusive_hold(self, body: Callable[[], T]) -> T:
        """Run ``body`` while holding the gate exclusively."""
        with self.hold():
            return body()

    def shutdown(self) -> None:
        """Release the engine handle and return to IDLE."""
        with self._lock:
            engine, self._engine = self._engine, None
            changed = self._state is not GateState.IDLE
            self._state = GateState.IDLE
            self.model_ref = None
        if engine is not None:
            engine.release()
            logger.info("Engine released")
        if changed:
            self._notify(GateState.IDLE)
