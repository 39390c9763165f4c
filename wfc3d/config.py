"""
Configuration constants.

Centralizes all magic numbers and default values used throughout the codebase.
Organized by functional area for easy maintenance.
"""

# =============================================================================
# SOLVER DEFAULTS
# =============================================================================

# Upper bound on cell-selection iterations per solve
DEFAULT_MAX_STEPS = 1_000_000

# Upper bound on pop-and-revert operations per solve
DEFAULT_MAX_BACKTRACKS = 10_000

# Seed for the solver's private generator. Negative = OS entropy.
DEFAULT_SEED = 12345

# Log contradiction reports and budget exhaustion (heavy)
DEFAULT_VERBOSE = False

# =============================================================================
# NUMERICS
# =============================================================================

# Variant weights are floored to this so entropy stays well-defined
MIN_VARIANT_WEIGHT = 1e-6

# Scale of the random perturbation added to entropy to break ties
ENTROPY_TIE_BREAKER = 1e-6

# =============================================================================
# BOUNDARY DIRECTIVES
# =============================================================================

# Allowed range for soft boundary multipliers (prefer / avoid)
BOUNDARY_MULTIPLIER_MIN = 0.1
BOUNDARY_MULTIPLIER_MAX = 4.0

DEFAULT_PREFER_MULTIPLIER = 2.0
DEFAULT_AVOID_MULTIPLIER = 0.5

# Rotation bias is indexed by quarter turn
ROTATION_COUNT = 4

# =============================================================================
# LEARNING (offline batch tools)
# =============================================================================

# Laplace smoothing. 0 = raw counts, 1 = add-one smoothing.
LAPLACE_ALPHA = 0.5

# Sharpen (gamma > 1) or soften (0 < gamma < 1) the learned distribution
WEIGHT_GAMMA = 1.0

# Normalize learned weights so the mean weight is ~1.0
NORMALIZE_WEIGHTS = True

# =============================================================================
# SERIALIZATION
# =============================================================================

MODEL_FORMAT_VERSION = 1
