"""
Outer-loop modes and ionic position history.

The structural mode is chosen once at configuration time:

- SinglePoint: no outer loop, no extrapolation
- MolecularDynamics: positions predicted from ionic velocities
- Relaxation: positions predicted from the search direction

The predicted next positions (``predicted``) are accumulated step by step:
each update adds one displacement to the previous prediction.
"""

from dataclasses import dataclass

import numpy as np

from .constants import HISTORY_DEPTH
from .history import History


@dataclass(frozen=True)
class SinglePoint:
    """Single ground-state calculation."""


@dataclass(frozen=True)
class MolecularDynamics:
    """
    Molecular dynamics.

    Attributes:
        timestep: MD time step (atomic units)
    """

    timestep: float

    def __post_init__(self):
        if self.timestep <= 0.0:
            raise ValueError(f"MD timestep must be positive, got {self.timestep}")


@dataclass(frozen=True)
class Relaxation:
    """Structural relaxation."""


def is_structural(mode):
    """True for modes with an outer structural loop."""
    return isinstance(mode, (MolecularDynamics, Relaxation))


class IonicState:
    """
    Atomic positions and motion data of the current structural step.

    Attributes:
        positions: Cartesian positions, shape (n_atom, 3)
        velocities: Ionic velocities (MD), shape (n_atom, 3)
        search_direction: Relaxation search direction, shape (n_atom, 3)
        relax_factor: Step length along the search direction
        constraint: Movable-atom mask (1 movable, 0 fixed), shape (n_atom, 3)
    """

    def __init__(self, positions, velocities=None, search_direction=None,
                 relax_factor=0.0, constraint=None):
        self.positions = np.array(positions, dtype=float).reshape(-1, 3)
        n_atom = len(self.positions)

        self.velocities = self._field(velocities, n_atom)
        self.search_direction = self._field(search_direction, n_atom)
        self.relax_factor = float(relax_factor)
        if constraint is None:
            self.constraint = np.ones((n_atom, 3))
        else:
            self.constraint = self._field(constraint, n_atom)

    @staticmethod
    def _field(values, n_atom):
        if values is None:
            return np.zeros((n_atom, 3))
        values = np.array(values, dtype=float).reshape(-1, 3)
        if len(values) != n_atom:
            raise ValueError(f"Expected {n_atom} atoms, got {len(values)}")
        return values

    @property
    def n_atom(self):
        return len(self.positions)


class PositionHistory:
    """
    Ionic positions of the last three steps plus the predicted next ones.

    Attributes:
        history: History of positions, age 0 most recent
        predicted: Predicted positions for the next step
    """

    def __init__(self, n_atom):
        self.n_atom = n_atom
        self.history = History(HISTORY_DEPTH, lambda: np.zeros((n_atom, 3)))
        self.predicted = np.zeros((n_atom, 3))

    def __getitem__(self, age):
        return self.history[age]

    def snapshot(self, positions):
        """Record ``positions`` in the age-0 slot."""
        self.history[0][:] = positions

    def predict(self, mode, ionic, first_step):
        """
        Update the predicted next positions.

        Args:
            mode: Structural mode
            ionic: IonicState of the current step
            first_step: True on the first eligible step of the mode; the
                prediction is then the current position
        """
        if first_step:
            self.predicted[:] = ionic.positions
        elif isinstance(mode, MolecularDynamics):
            self.predicted += mode.timestep * ionic.velocities
        elif isinstance(mode, Relaxation):
            self.predicted += ionic.relax_factor * ionic.search_direction * ionic.constraint
        else:
            raise ValueError(f"No position prediction for mode {mode!r}")

    def shift(self):
        """Age every entry by one step; the prediction becomes age 0."""
        self.history.push(self.predicted.copy())

    def reset(self):
        self.history.reset()
        self.predicted[:] = 0.0
