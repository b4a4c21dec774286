"""State machines for pipeline stage progression and scoring mode."""

from enum import Enum

import structlog

from personal_feed.observability import FeedLogger


logger = structlog.get_logger()


class PipelineState(str, Enum):
    """Stage of one pipeline run.

    States represent the lifecycle of a feed request:
    - PROFILE_READY: Profile validated, nothing fetched yet
    - ENCODED: Query vector produced
    - RETRIEVED: Candidates fetched from the store
    - CONSTRAINED: Dedupe, source caps and reorder applied
    - SCORED: Final scores assigned
    - DELIVERED: Results returned to the caller
    - EMPTY: No candidates survived; terminal
    - FAILED: Encoding or retrieval failed; terminal
    """

    PROFILE_READY = "PROFILE_READY"
    ENCODED = "ENCODED"
    RETRIEVED = "RETRIEVED"
    CONSTRAINED = "CONSTRAINED"
    SCORED = "SCORED"
    DELIVERED = "DELIVERED"
    EMPTY = "EMPTY"
    FAILED = "FAILED"


_PIPELINE_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.PROFILE_READY: {PipelineState.ENCODED, PipelineState.FAILED},
    PipelineState.ENCODED: {PipelineState.RETRIEVED, PipelineState.FAILED},
    PipelineState.RETRIEVED: {PipelineState.CONSTRAINED, PipelineState.EMPTY},
    PipelineState.CONSTRAINED: {PipelineState.SCORED, PipelineState.EMPTY},
    PipelineState.SCORED: {PipelineState.DELIVERED},
    PipelineState.DELIVERED: set(),
    PipelineState.EMPTY: set(),
    PipelineState.FAILED: set(),
}


class ScoringState(str, Enum):
    """Scoring mode of one request.

    - NORMAL: Oracle scores are used
    - FALLBACK: No oracle score was obtained; position curve is used
    """

    NORMAL = "NORMAL"
    FALLBACK = "FALLBACK"


_SCORING_TRANSITIONS: dict[ScoringState, set[ScoringState]] = {
    ScoringState.NORMAL: {ScoringState.FALLBACK},
    ScoringState.FALLBACK: set(),
}


class StateTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(self, run_id: str, from_state: Enum, to_state: Enum) -> None:
        """Initialize the transition error.

        Args:
            run_id: Identifier of the run.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.run_id = run_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition for run '{run_id}': "
            f"{from_state.value} -> {to_state.value}"
        )


class _StateMachine:
    """Transition guard shared by the concrete machines."""

    _transitions: dict
    _event_prefix: str

    def __init__(self, run_id: str, initial_state: Enum, log: FeedLogger | None) -> None:
        self._run_id = run_id
        self._state = initial_state
        self._log = (log or logger).bind(
            component="ranker",
            subcomponent=f"{self._event_prefix}_state",
            run_id=run_id,
        )

    @property
    def run_id(self) -> str:
        """Get the run identifier."""
        return self._run_id

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return not self._transitions[self._state]

    def can_transition_to(self, target: Enum) -> bool:
        """Check if a transition to the target state is valid."""
        return target in self._transitions.get(self._state, set())

    def transition_to(self, target: Enum) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            StateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                f"illegal_{self._event_prefix}_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise StateTransitionError(self._run_id, self._state, target)

        old_state = self._state
        self._state = target
        self._log.debug(
            f"{self._event_prefix}_state_transition",
            from_state=old_state.value,
            to_state=target.value,
        )


class PipelineStateMachine(_StateMachine):
    """Tracks a run from validated profile to delivered results."""

    _transitions = _PIPELINE_TRANSITIONS
    _event_prefix = "pipeline"

    def __init__(
        self,
        run_id: str,
        initial_state: PipelineState = PipelineState.PROFILE_READY,
        log: FeedLogger | None = None,
    ) -> None:
        super().__init__(run_id, initial_state, log)

    @property
    def state(self) -> PipelineState:
        """Get the current state."""
        return PipelineState(self._state)

    def to_encoded(self) -> None:
        """Transition to ENCODED state."""
        self.transition_to(PipelineState.ENCODED)

    def to_retrieved(self) -> None:
        """Transition to RETRIEVED state."""
        self.transition_to(PipelineState.RETRIEVED)

    def to_constrained(self) -> None:
        """Transition to CONSTRAINED state."""
        self.transition_to(PipelineState.CONSTRAINED)

    def to_scored(self) -> None:
        """Transition to SCORED state."""
        self.transition_to(PipelineState.SCORED)

    def to_delivered(self) -> None:
        """Transition to DELIVERED state."""
        self.transition_to(PipelineState.DELIVERED)

    def to_empty(self) -> None:
        """Transition to EMPTY state."""
        self.transition_to(PipelineState.EMPTY)

    def to_failed(self) -> None:
        """Transition to FAILED state."""
        self.transition_to(PipelineState.FAILED)


class ScoringStateMachine(_StateMachine):
    """Tracks whether a request fell back to position scoring.

    FALLBACK is terminal: once entered it is never left within the
    request.
    """

    _transitions = _SCORING_TRANSITIONS
    _event_prefix = "scoring"

    def __init__(
        self,
        run_id: str,
        initial_state: ScoringState = ScoringState.NORMAL,
        log: FeedLogger | None = None,
    ) -> None:
        super().__init__(run_id, initial_state, log)

    @property
    def state(self) -> ScoringState:
        """Get the current state."""
        return ScoringState(self._state)

    def to_fallback(self) -> None:
        """Transition to FALLBACK state."""
        self.transition_to(ScoringState.FALLBACK)
