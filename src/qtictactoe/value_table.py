"""Tabular action-value storage."""

from typing import Dict, Iterator, List, Mapping, Sequence

import numpy as np
import numpy.typing as npt

NUM_ACTIONS = 9


class ValueTable:
    """
    Mapping from state key to a 9-element vector of action values.

    Unseen states behave as the zero vector. Reads through ``peek`` never
    change the table; ``get_or_init`` inserts the zero vector so the entry
    can be updated in place.
    """

    def __init__(self, values: Mapping[str, Sequence[float]] | None = None) -> None:
        """
        Initialize the table.

        Args:
            values: Optional initial mapping of state key -> 9 action values
        """
        self._values: Dict[str, npt.NDArray[np.float64]] = {}
        if values:
            for key, vector in values.items():
                self._values[key] = _as_vector(vector)

    def get_or_init(self, state_key: str) -> npt.NDArray[np.float64]:
        """Get the live value vector for a state, inserting zeros if new."""
        if state_key not in self._values:
            self._values[state_key] = np.zeros(NUM_ACTIONS, dtype=np.float64)
        return self._values[state_key]

    def peek(self, state_key: str) -> npt.NDArray[np.float64]:
        """Get a read-only view of a state's values (zeros if unseen)."""
        vector = self._values.get(state_key)
        if vector is None:
            vector = np.zeros(NUM_ACTIONS, dtype=np.float64)
        view = vector.view()
        view.flags.writeable = False
        return view

    def max_value(self, state_key: str) -> float:
        """Largest action value of a state, materializing it first."""
        return float(np.max(self.get_or_init(state_key)))

    def keys(self) -> List[str]:
        return list(self._values)

    def clear(self) -> None:
        self._values.clear()

    def copy(self) -> "ValueTable":
        return ValueTable(self._values)

    def to_dict(self) -> Dict[str, List[float]]:
        """Plain-Python representation for serialization."""
        return {key: [float(v) for v in vector] for key, vector in self._values.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Sequence[float]]) -> "ValueTable":
        """
        Build a table from a deserialized mapping.

        Raises:
            ValueError: If a key is not a string or a vector is not 9 numbers
        """
        for key in data:
            if not isinstance(key, str):
                raise ValueError(f"State key must be a string, got {type(key).__name__}")
        return cls(data)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, state_key: object) -> bool:
        return state_key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"ValueTable(states={len(self._values)})"


def _as_vector(values: Sequence[float]) -> npt.NDArray[np.float64]:
    """Validate and copy a sequence into a float64 vector."""
    if not isinstance(values, (list, tuple, np.ndarray)):
        raise ValueError(f"Action values must be a list of numbers, got {values!r}")
    for v in values:
        # bool is an int subclass but never a valid action value
        if isinstance(v, bool) or not isinstance(v, (int, float, np.floating, np.integer)):
            raise ValueError(f"Action value must be a number, got {v!r}")
    try:
        vector = np.array(values, dtype=np.float64)
    except OverflowError as e:
        raise ValueError(f"Action value out of range: {e}") from e
    if vector.shape != (NUM_ACTIONS,):
        raise ValueError(f"Expected {NUM_ACTIONS} action values, got shape {vector.shape}")
    if not np.all(np.isfinite(vector)):
        raise ValueError("Action values must be finite")
    return vector
