"""
tests/unit/test_navigation.py

Unit tests for the navigation state machine.
"""

import pytest

from blinkit_agent.worker.navigation import ClearingAction, NavigationStateMachine


class Screen:
    """A sequence of screens; each clearing action advances to the next one."""

    def __init__(self, screens: list[str]) -> None:
        self.screens = screens
        self.index = 0

    @property
    def current(self) -> str:
        return self.screens[self.index]

    def advance(self) -> None:
        self.index = min(self.index + 1, len(self.screens) - 1)


def make_machine(screen: Screen, fake_clock, actions: list[ClearingAction] | None = None) -> NavigationStateMachine:
    if actions is None:
        actions = [
            ClearingAction("skip_tip", lambda: screen.current == "tip", screen.advance),
            ClearingAction("proceed", lambda: screen.current in ("summary", "tip"), screen.advance),
            ClearingAction("dismiss", lambda: screen.current == "modal", screen.advance),
        ]
    return NavigationStateMachine(
        target_reached=lambda: screen.current == "payment",
        actions=actions,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )


class TestNavigationStateMachine:
    """Goal-directed navigation toward the payment screen."""

    def test_target_already_present(self, fake_clock) -> None:
        """No actions are taken when the marker is visible on the first look."""
        outcome = make_machine(Screen(["payment"]), fake_clock).navigate(10)
        assert outcome.reached
        assert outcome.cleared_steps == ()
        assert fake_clock.sleeps == []

    def test_clears_intermediate_screens_in_order(self, fake_clock) -> None:
        outcome = make_machine(Screen(["modal", "tip", "summary", "payment"]), fake_clock).navigate(10)
        assert outcome.reached
        assert outcome.cleared_steps == ("dismiss", "skip_tip", "proceed")

    def test_priority_order_picks_first_applicable(self, fake_clock) -> None:
        """On the tip screen both skip and proceed apply; skip wins."""
        outcome = make_machine(Screen(["tip", "payment"]), fake_clock).navigate(10)
        assert outcome.cleared_steps == ("skip_tip",)

    def test_deadline_elapses_without_raising(self, fake_clock) -> None:
        """An unknown screen with no applicable action ends as reached=False."""
        start = fake_clock.now
        outcome = make_machine(Screen(["interstitial"]), fake_clock).navigate(3)
        assert not outcome.reached
        assert outcome.cleared_steps == ()
        assert fake_clock.now - start <= 3 + 1e-9

    def test_partial_progress_is_reported(self, fake_clock) -> None:
        screen = Screen(["modal", "interstitial"])
        outcome = make_machine(screen, fake_clock).navigate(2)
        assert not outcome.reached
        assert outcome.cleared_steps == ("dismiss",)

    def test_failing_action_is_retried(self, fake_clock) -> None:
        """A detached element fails once; the next pass succeeds and both attempts are listed."""
        screen = Screen(["summary", "payment"])
        attempts = []

        def flaky_proceed() -> None:
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("element is detached from the DOM")
            screen.advance()

        actions = [ClearingAction("proceed", lambda: screen.current == "summary", flaky_proceed)]
        outcome = make_machine(screen, fake_clock, actions).navigate(10)
        assert outcome.reached
        assert outcome.cleared_steps == ("proceed", "proceed")
        assert len(attempts) == 2

    def test_unreached_outcome_lists_failed_attempts(self, fake_clock) -> None:
        screen = Screen(["summary", "payment"])
        attempts = []

        def broken_proceed() -> None:
            attempts.append(1)
            raise RuntimeError("element is not attached to the DOM")

        actions = [ClearingAction("proceed", lambda: screen.current == "summary", broken_proceed)]
        outcome = make_machine(screen, fake_clock, actions).navigate(3)
        assert not outcome.reached
        assert attempts
        assert outcome.cleared_steps == ("proceed",) * len(attempts)

    def test_failing_observation_counts_as_absent(self, fake_clock) -> None:
        def broken() -> bool:
            raise RuntimeError("frame was detached")

        machine = NavigationStateMachine(
            target_reached=broken,
            actions=[],
            clock=fake_clock,
            sleep=fake_clock.sleep,
        )
        outcome = machine.navigate(1)
        assert not outcome.reached

    def test_never_sleeps_past_deadline(self, fake_clock) -> None:
        machine = NavigationStateMachine(
            target_reached=lambda: False,
            actions=[],
            poll_seconds=0.7,
            clock=fake_clock,
            sleep=fake_clock.sleep,
        )
        start = fake_clock.now
        machine.navigate(2)
        assert fake_clock.now - start == pytest.approx(2)
