"""
Numerical constants for density and orbital initialization.

All values are in Hartree atomic units unless otherwise specified.
"""

# =============================================================================
# Density
# =============================================================================

# Floor applied to negative extrapolated densities
XC_RHOTOL = 1e-14

# =============================================================================
# Random initial orbitals
# =============================================================================

RAND_MIN = -0.5
RAND_MAX = 0.5

DEFAULT_SEED = 1

# =============================================================================
# Charge extrapolation
# =============================================================================

# Number of stored density deviations / ionic configurations
HISTORY_DEPTH = 3

# Net electronic ground-state solves needed before fitting
MIN_EXTRAPOLATION_SOLVES = 3

# LAPACK convention: negative rcond means machine precision
DEFAULT_RCOND = -1.0

# =============================================================================
# Numerical Tolerances
# =============================================================================

EPS10 = 1e-10
EPS20 = 1e-20
