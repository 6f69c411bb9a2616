"""Fixed constants: default frame, unit conversion, SPICE call options."""

# Reference frame used when none is given
DEFAULT_FRAME = 'J2000'

# SPICE works in km and km/s; states are returned in m and m/s.
METERS_PER_KM = 1000.0

# Aberration correction used for all state lookups (geometric states only)
ABERRATION_CORRECTION = 'NONE'

# Separator in canonical key strings ("Earth_Sun_J2000")
KEY_SEPARATOR = '_'
