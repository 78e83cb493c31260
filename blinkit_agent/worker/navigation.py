"""
blinkit_agent/worker/navigation.py

Goal-directed navigation through an unknown sequence of intermediate screens.

Each iteration either observes the target marker and stops, or takes the first
applicable clearing action (in priority order), waits for the UI to settle and
looks again. Running out of time is a normal outcome, reported as reached=False.
"""

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from blinkit_agent.data_models.outcomes import NavigationOutcome
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)

DEFAULT_SETTLE_SECONDS = 1.0
DEFAULT_POLL_SECONDS = 0.5


@dataclass(frozen=True)
class ClearingAction:
    """One known way of removing an obstacle from the screen."""
    label: str
    applies: Callable[[], bool]
    perform: Callable[[], None]


class NavigationStateMachine:
    """
    Advances toward a target screen by clearing one obstacle per iteration.

    Args:
        target_reached: Observation of the target screen's marker.
        actions: Clearing actions in priority order; the first applicable one wins.
        settle_seconds: Pause after taking an action.
        poll_seconds: Pause when nothing applies and the target is absent.
    """

    def __init__(
        self,
        target_reached: Callable[[], bool],
        actions: Sequence[ClearingAction],
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        poll_seconds: float = DEFAULT_POLL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.target_reached = target_reached
        self.actions = list(actions)
        self.settle_seconds = settle_seconds
        self.poll_seconds = poll_seconds
        self._clock = clock
        self._sleep = sleep

    def navigate(self, deadline_seconds: float) -> NavigationOutcome:
        """
        Run until the target is observed or ``deadline_seconds`` elapse. Never raises.
        """
        deadline = self._clock() + deadline_seconds
        cleared: list[str] = []

        while True:
            if self._observe(self.target_reached, "target marker"):
                logger.info("Target screen reached after %d cleared steps", len(cleared))
                return NavigationOutcome(reached=True, cleared_steps=tuple(cleared))

            remaining = deadline - self._clock()
            if remaining <= 0:
                break

            action = self._first_applicable()
            if action is None:
                self._sleep(min(self.poll_seconds, remaining))
                continue

            # recorded before performing, so cleared_steps is every attempt in order
            cleared.append(action.label)
            try:
                action.perform()
            except Exception as e:  # a stale or detached element is retried on the next pass
                logger.debug("Clearing action '%s' failed: %s", action.label, e)
                self._sleep(min(self.poll_seconds, max(deadline - self._clock(), 0)))
                continue

            logger.debug("Cleared step: %s", action.label)
            self._sleep(min(self.settle_seconds, max(deadline - self._clock(), 0)))

        logger.info("Navigation deadline elapsed; cleared steps: %s", cleared)
        return NavigationOutcome(reached=False, cleared_steps=tuple(cleared))

    def _first_applicable(self) -> ClearingAction | None:
        for action in self.actions:
            if self._observe(action.applies, action.label):
                return action
        return None

    @staticmethod
    def _observe(check: Callable[[], bool], label: str) -> bool:
        try:
            return bool(check())
        except Exception as e:  # an observation that cannot be made counts as absent
            logger.debug("Observation '%s' failed: %s", label, e)
            return False
