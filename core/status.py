# core/status.py
"""
Lifecycle status transitions shared by orders and bookings.

One validator class, configured per entity with its terminal states and the
few explicit (from, to) pairs allowed to enter a terminal state.
"""


def _status_value(status):
    # Enum members and raw strings compare on the stored value
    return getattr(status, 'value', status)


class StatusTransitionValidator:
    """
    Decides whether a record may move from one status to another.

    Rules, in order:
      1. same status            -> valid
      2. current is terminal    -> invalid
      3. proposed is completed  -> valid
      4. proposed non-terminal, or (current, proposed) in the allow-list
    """

    def __init__(self, terminal_states, allowed_terminal_entries=(), completed_state='completed'):
        self.terminal_states = frozenset(_status_value(s) for s in terminal_states)
        self.allowed_terminal_entries = frozenset(
            (_status_value(src), _status_value(dst)) for src, dst in allowed_terminal_entries
        )
        self.completed_state = _status_value(completed_state)

    def is_terminal(self, status):
        return _status_value(status) in self.terminal_states

    def is_valid_transition(self, current, proposed):
        current = _status_value(current)
        proposed = _status_value(proposed)

        if current == proposed:
            return True

        if current in self.terminal_states:
            return False

        if proposed == self.completed_state:
            return True

        if proposed not in self.terminal_states:
            return True

        return (current, proposed) in self.allowed_terminal_entries

    def __repr__(self):
        return (
            f"StatusTransitionValidator(terminal={sorted(self.terminal_states)}, "
            f"allowed={sorted(self.allowed_terminal_entries)})"
        )
