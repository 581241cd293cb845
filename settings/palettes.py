# settings/palettes.py

"""
Color palettes used across charts and the schedule grid.
Separated to keep visualization consistent and themable.
"""

# Blue palette for cluster / area pie charts
BLUE_PALETTE = [
    "#E3F2FD",  # very light blue
    "#90CAF9",  # light blue
    "#42A5F5",  # medium blue
    "#1E88E5",  # dark blue
    "#0D47A1",  # very dark blue
]

# Hours bank balance status
BALANCE_PALETTE = {
    "healthy": "#10B981",
    "warning": "#F59E0B",
    "critical": "#EF4444",
}

# Schedule grid cell colours, one per status code
SCHEDULE_PALETTE = {
    "08-17": "#D1FAE5",
    "09-18": "#D1FAE5",
    "10-19": "#D1FAE5",
    "13-22": "#D1FAE5",
    "FOLGA": "#E2E8F0",
    "FÉRIAS": "#E0E7FF",
    "FB": "#FEF3C7",
    "INSS": "#FECACA",
    "ATESTADO": "#FEE2E2",
    "AFAST": "#FFEDD5",
}

# Vacation request status
VACATION_PALETTE = {
    "approved": "#137FEC",
    "planned": "#A855F7",
    "pending": "#64748B",
}

PRESENCE_COLOR = "#137FEC"
ABSENCE_COLOR = "#94A3B8"
