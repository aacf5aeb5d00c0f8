"""
State machine engine - validates transitions of a single entity
"""
from typing import Dict, List, Any, Optional, Callable
from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)


@dataclass
class StateTransition:
    """
    Transition definition

    Attributes:
        from_state: source state
        to_state: target state
        trigger: action name
        condition: optional guard evaluated against a context dict
    """

    from_state: str
    to_state: str
    trigger: str
    condition: Optional[Callable[[Dict[str, Any]], bool]] = None

    def is_allowed(self, context: Dict[str, Any]) -> bool:
        if self.condition is None:
            return True
        try:
            return self.condition(context)
        except Exception as e:
            logger.error(f"Error checking transition condition: {e}")
            return False


@dataclass
class StateMachineConfig:
    """
    State machine configuration

    Attributes:
        name: machine name
        states: every known state
        transitions: allowed transitions
        initial_state: state the machine starts in
        terminal_states: states with no way out
    """

    name: str
    states: List[str]
    transitions: List[StateTransition]
    initial_state: str
    terminal_states: List[str] = field(default_factory=list)



class StateMachine:
    """
    State machine engine

    Example:
        >>> machine = StateMachine(
        ...     config=StateMachineConfig(
        ...         name="ServiceRequest",
        ...         states=["pending", "in_progress", "completed"],
        ...         transitions=[...],
        ...         initial_state="pending"
        ...     )
        ... )
        >>> machine.can_transition_to("in_progress", "assign")
        True
    """

    def __init__(self, config: StateMachineConfig):
        self._config = config
        self._current_state = config.initial_state
        self._transition_map: Dict[str, Dict[str, StateTransition]] = {}

        # (from_state, trigger) -> transition
        for t in config.transitions:
            self._transition_map.setdefault(t.from_state, {})[t.trigger] = t

    @property
    def current_state(self) -> str:
        return self._current_state

    def is_terminal(self) -> bool:
        return self._current_state in self._config.terminal_states

    def can_transition_to(self, target_state: str, trigger: str, context: Optional[Dict[str, Any]] = None) -> bool:
        """
        Check whether the machine may move to target_state via trigger

        Returns:
            True if the transition is allowed
        """
        if target_state not in self._config.states:
            return False

        transition = self._transition_map.get(self._current_state, {}).get(trigger)
        if transition is None or transition.to_state != target_state:
            logger.debug(
                f"{self._config.name}: no {trigger} transition {self._current_state} -> {target_state}"
            )
            return False

        return transition.is_allowed(context or {})

    def reset(self, state: Optional[str] = None) -> None:
        """Reset to `state`, or to the initial state"""
        self._current_state = state if state is not None else self._config.initial_state
