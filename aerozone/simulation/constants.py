"""
Simulation Constants
"""

# Identity of the user's own flight
PLANNED_FLIGHT_ID = "PLANNED_ROUTE"
PLANNED_CALLSIGN = "YOUR FLIGHT"

# Route matching
MIN_CENTERLINE_POINTS: int = 2  # Centerlines shorter than this are ignored

# Arrival tolerance when comparing travelled and total distance (nm)
ARRIVAL_EPSILON_NM: float = 1e-9

# Proximity severities
SEVERITY_CRITICAL = "critical"
SEVERITY_WARNING = "warning"
