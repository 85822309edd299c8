"""
Stored-status state machines.

A module declares the lifecycle of its records once as a ``Workflow``.
Services then look up the transition an action fires from the current
status, and refuse the action when there is none.  The objects only
describe the machine: guards are named here and checked by the service
that owns the record.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """
    Raises ``ValueError`` at construction when the initial state, a
    transition endpoint or a terminal state is not in ``states``, or when a
    terminal state has an outgoing transition.
    """

    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        declared = set(self.states)
        used = {self.initial_state, *self.terminal_states}
        for t in self.transitions:
            used.update((t.from_state, t.to_state))
        undeclared = sorted(used - declared)
        if undeclared:
            raise ValueError(f"Workflow {self.name}: undeclared state(s) {undeclared}")

        leaving = {t.from_state for t in self.transitions}
        dead_ends = sorted(leaving & set(self.terminal_states))
        if dead_ends:
            raise ValueError(
                f"Workflow {self.name}: terminal state(s) {dead_ends} have outgoing transitions"
            )

    def transition_for(self, from_state: str, action: str) -> Transition | None:
        return next(
            (t for t in self.transitions if t.from_state == from_state and t.action == action),
            None,
        )
