"""
Configuration of the initial-guess machinery.
"""

from dataclasses import dataclass, field

from .constants import DEFAULT_RCOND, DEFAULT_SEED, RAND_MAX, RAND_MIN, XC_RHOTOL
from .ionic import MolecularDynamics, Relaxation, SinglePoint, is_structural
from .spin import SpinType


@dataclass
class GuessConfig:
    """
    Parameters of density and orbital initialization.

    Attributes:
        target_charge: Total positive charge the density integrates to
        spin: SpinType (an integer code 0/1/2 is accepted)
        mode: SinglePoint, MolecularDynamics or Relaxation
        fix_rand_seed: Seeded per-coefficient orbitals (partition
            independent) instead of process-local random orbitals
        seed: Base seed of the random orbitals
        same_kpoint_orbitals: Start every k-point from the same orbitals
        rand_min, rand_max: Range of the random orbital coefficients
        density_floor: Value replacing negative extrapolated densities
        rcond: Singular value cutoff of the extrapolation fit
        cyclix: Integrate with per-node weights instead of a uniform dV
        verbose: Print a summary from the driver
    """

    target_charge: float
    spin: SpinType = SpinType.NONE
    mode: object = field(default_factory=SinglePoint)
    fix_rand_seed: bool = False
    seed: int = DEFAULT_SEED
    same_kpoint_orbitals: bool = True
    rand_min: float = RAND_MIN
    rand_max: float = RAND_MAX
    density_floor: float = XC_RHOTOL
    rcond: float = DEFAULT_RCOND
    cyclix: bool = False
    verbose: bool = False

    def __post_init__(self):
        if not isinstance(self.spin, SpinType):
            self.spin = SpinType.from_code(self.spin)
        if not isinstance(self.mode, (SinglePoint, MolecularDynamics, Relaxation)):
            raise ValueError(f"Unknown structural mode: {self.mode!r}")
        if self.target_charge <= 0.0:
            raise ValueError(f"target_charge must be positive, got {self.target_charge}")
        if self.rand_min >= self.rand_max:
            raise ValueError(
                f"Empty random range [{self.rand_min}, {self.rand_max})")
        if self.density_floor <= 0.0:
            raise ValueError(f"density_floor must be positive, got {self.density_floor}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")

    @property
    def structural(self):
        return is_structural(self.mode)

    @classmethod
    def from_dict(cls, params):
        """
        Build a configuration from input-file style parameters.

        Recognized keys: spin_typ, MDFlag, RelaxFlag, MD_dt, PosCharge,
        FixRandSeed, CyclixFlag, xc_rhotol, plus the attribute names of
        this class.
        """
        params = dict(params)
        md = int(params.pop('MDFlag', 0))
        relax = int(params.pop('RelaxFlag', 0))
        dt = params.pop('MD_dt', None)
        if md and relax:
            raise ValueError("MDFlag and RelaxFlag cannot both be set")
        if md:
            if dt is None:
                raise ValueError("MD_dt is required when MDFlag is set")
            params.setdefault('mode', MolecularDynamics(float(dt)))
        elif relax:
            params.setdefault('mode', Relaxation())

        renames = {
            'spin_typ': 'spin',
            'PosCharge': 'target_charge',
            'FixRandSeed': 'fix_rand_seed',
            'CyclixFlag': 'cyclix',
            'xc_rhotol': 'density_floor',
        }
        for old, new in renames.items():
            if old in params:
                params[new] = params.pop(old)
        for key in ('fix_rand_seed', 'cyclix'):
            if key in params:
                params[key] = bool(int(params[key]))

        if 'target_charge' not in params:
            raise ValueError("PosCharge is required")

        unknown = set(params) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**params)
