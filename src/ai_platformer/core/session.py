"""Interactive session: async level loading around the pure game core.

The frame loop must never block on the generation request, so levels are
generated on a worker thread. Each request gets a token from a monotonically
increasing counter; when a request finishes, its result is used only if its
token is still the latest one. Older results are dropped, which resolves the
race between overlapping requests (e.g. restart pressed twice quickly).

While a request is outstanding the session is ``loading`` and ignores input.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import jax

from .game import PlatformerGame
from .state import STATUS_NAMES, GameState
from ..systems.generation.generator import LevelGenerator
from ..systems.generation.level import LevelDescription

logger = logging.getLogger(__name__)

LOADING = "loading"
IDLE = "idle"


class PlatformerSession:
    """
    Owns the current game state for an interactive front end.

    Attributes
    ----------
    game : PlatformerGame
        Pure game core (its step/render are jitted here)
    generator : LevelGenerator
        Level source, called on the worker thread
    state : Optional[GameState]
        Current state, None until the first level has loaded
    level : Optional[LevelDescription]
        Level the current state was built from
    """

    def __init__(
        self,
        game: PlatformerGame,
        generator: LevelGenerator,
        executor: Optional[ThreadPoolExecutor] = None,
        seed: int = 0,
    ):
        self.game = game
        self.generator = generator
        self._executor = executor if executor is not None else ThreadPoolExecutor(max_workers=1)
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._latest_token = 0
        self._pending_token: Optional[int] = None
        self._settled: Optional[threading.Event] = None
        self._ready: Optional[tuple[int, LevelDescription]] = None
        self._key = jax.random.PRNGKey(seed)

        self.state: Optional[GameState] = None
        self.level: Optional[LevelDescription] = None
        self.theme: Optional[str] = None

        self._step = jax.jit(game.step)
        self._render = jax.jit(game.render)

    # ------------------------------------------------------------------
    # Level requests
    # ------------------------------------------------------------------

    def request_level(self, theme: str, level_number: int) -> int:
        """
        Start generating a level in the background.

        Returns:
            The request token. Results of earlier tokens will be discarded.
        """
        settled = threading.Event()
        with self._lock:
            self._latest_token += 1
            token = self._latest_token
            self._pending_token = token
            self._settled = settled
            self._ready = None
        self.theme = theme
        future = self._executor.submit(self.generator.generate_level, theme, level_number)
        future.add_done_callback(lambda f: self._on_done(token, f, settled))
        logger.debug("Requested %s level %d (token %d)", theme, level_number, token)
        return token

    def _on_done(self, token: int, future: Future, settled: threading.Event) -> None:
        try:
            if future.cancelled():
                return
            exc = future.exception()
            if exc is not None:
                # generate_level only raises for bad arguments; poll() re-raises it.
                logger.error("Level request %d failed: %s", token, exc)
            with self._lock:
                if token != self._latest_token:
                    logger.debug(
                        "Discarding stale level result (token %d, latest %d)", token, self._latest_token
                    )
                    return
                self._pending_token = None
                self._ready = (token, exc if exc is not None else future.result())
        finally:
            settled.set()

    @property
    def latest_token(self) -> int:
        return self._latest_token

    @property
    def loading(self) -> bool:
        with self._lock:
            return self._pending_token is not None or self._ready is not None

    def poll(self) -> bool:
        """
        Install a finished level, if any. Call once per frame.

        Returns:
            True when a new level was installed this call

        Raises:
            The exception of a failed latest request (bad theme/level number)
        """
        with self._lock:
            ready, self._ready = self._ready, None
        if ready is None:
            return False
        _, result = ready
        if isinstance(result, BaseException):
            raise result
        self._key, key = jax.random.split(self._key)
        self.level = result
        self.state = self.game.reset(result, key)
        logger.info("Level %d ready (%s)", result.level_number, result.source)
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the latest request settles, then ``poll``."""
        with self._lock:
            settled = self._settled
        if settled is not None:
            settled.wait(timeout)
        return self.poll()

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    @property
    def status(self) -> str:
        if self.loading:
            return LOADING
        if self.state is None:
            return IDLE
        return STATUS_NAMES[int(self.state.status)]

    def accepts_input(self) -> bool:
        return (not self.loading) and self.state is not None and self.game.is_running(self.state)

    def step(self, action: int) -> Optional[dict]:
        """Advance one tick; a no-op returning None while loading or idle."""
        if not self.accepts_input():
            return None
        self.state, info = self._step(self.state, action)
        return info

    def render(self):
        if self.state is None:
            return None
        return self._render(self.state)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
