"""Per-frame key state tracking.

The terminal only reports key presses. A press marks the key as held and a
release is synthesized a short time later by a timer. Form widgets consume
held keys during the render pass, so a physical press is handled at most
once even though it stays "held" across several frames.
"""

from typing import Any, Callable, Dict, Optional, Set

from worktree_tasks.logging_config import get_logger

logger = get_logger(__name__)


class KeyStateTracker:
    """Held / just-pressed / just-released bookkeeping for raw key tokens."""

    def __init__(self):
        self._key_states: Dict[str, bool] = {}
        self._just_pressed: Set[str] = set()
        self._just_released: Set[str] = set()
        self._release_handles: Dict[str, Any] = {}

    def set_key_state(self, key: str, pressed: bool) -> None:
        """Record a press or release, tracking the edge for this frame."""
        held = self._key_states.get(key, False)
        if pressed and not held:
            self._just_pressed.add(key)
        elif not pressed and held:
            self._just_released.add(key)
        self._key_states[key] = pressed

    def update_key_states(self) -> None:
        """Start a new frame: edges are visible for exactly one frame."""
        self._just_pressed = set()
        self._just_released = set()

    def is_pressed(self, key: str) -> bool:
        return self._key_states.get(key, False)

    def just_pressed(self, key: str) -> bool:
        return key in self._just_pressed

    def just_released(self, key: str) -> bool:
        return key in self._just_released

    def consume_key(self, key: str, callback: Callable[[], Any]) -> bool:
        """Invoke ``callback`` if ``key`` is held, clearing the held flag first."""
        if not self._key_states.get(key):
            return False
        self._key_states[key] = False
        callback()
        return True

    def consume_any_key(self, callback: Callable[[str], Any]) -> bool:
        """Hand the first held key to ``callback``, clearing only that key."""
        key = next((k for k, held in self._key_states.items() if held), None)
        if key is None:
            return False
        self._key_states[key] = False
        callback(key)
        return True

    def schedule_release(
        self,
        key: str,
        call_later: Callable[[float, Callable[[], None]], Any],
        delay: float,
    ) -> None:
        """Synthesize the release of ``key`` after ``delay`` seconds.

        A pending release for the same key is cancelled first, so repeated
        presses keep a single timer per key.
        """
        self.cancel_release(key)
        self._release_handles[key] = call_later(delay, lambda: self._release(key))

    def cancel_release(self, key: str) -> None:
        handle: Optional[Any] = self._release_handles.pop(key, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for key in list(self._release_handles):
            self.cancel_release(key)

    def _release(self, key: str) -> None:
        self._release_handles.pop(key, None)
        self.set_key_state(key, False)
