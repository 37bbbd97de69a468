"""Mapping between canonical activity labels and exercise-type codes."""

from healthbridge.services.connect.errors import UnsupportedOperationError

# Exercise-type code used when the store reports a code with no label
OTHER_WORKOUT = 0

# Canonical activity label -> store exercise-type code
ACTIVITY_TYPES: dict[str, int] = {
    "other": OTHER_WORKOUT,
    "badminton": 2,
    "baseball": 4,
    "basketball": 5,
    "biking": 8,
    "biking.stationary": 9,
    "boot_camp": 10,
    "boxing": 11,
    "calisthenics": 13,
    "cricket": 14,
    "dancing": 16,
    "elliptical": 25,
    "exercise_class": 26,
    "fencing": 27,
    "football.american": 28,
    "football.australian": 29,
    "frisbee_disc": 31,
    "golf": 32,
    "guided_breathing": 33,
    "gymnastics": 34,
    "handball": 35,
    "high_intensity_interval_training": 36,
    "hiking": 37,
    "ice_hockey": 38,
    "ice_skating": 39,
    "martial_arts": 44,
    "paddling": 46,
    "paragliding": 47,
    "pilates": 48,
    "racquetball": 50,
    "rock_climbing": 51,
    "roller_hockey": 52,
    "rowing": 53,
    "rowing.machine": 54,
    "rugby": 55,
    "running": 56,
    "running.treadmill": 57,
    "sailing": 58,
    "scuba_diving": 59,
    "skating": 60,
    "skiing": 61,
    "snowboarding": 62,
    "snowshoeing": 63,
    "soccer": 64,
    "softball": 65,
    "squash": 66,
    "stair_climbing": 68,
    "stair_climbing.machine": 69,
    "strength_training": 70,
    "stretching": 71,
    "surfing": 72,
    "swimming.open_water": 73,
    "swimming.pool": 74,
    "table_tennis": 75,
    "tennis": 76,
    "volleyball": 78,
    "walking": 79,
    "water_polo": 80,
    "weightlifting": 81,
    "wheelchair": 82,
    "yoga": 83,
}

EXERCISE_TYPE_LABELS: dict[int, str] = {code: label for label, code in ACTIVITY_TYPES.items()}


def exercise_type_from_activity(label: str) -> int:
    """
    Resolve a canonical activity label to an exercise-type code.

    Raises:
        UnsupportedOperationError: If the label is not in the activity table
    """
    code = ACTIVITY_TYPES.get(label.strip().lower())
    if code is None:
        raise UnsupportedOperationError(f"Activity type not recognized {label}")
    return code


def activity_from_exercise_type(code: int) -> str:
    """Resolve an exercise-type code to its label, ``other`` when unmapped."""
    return EXERCISE_TYPE_LABELS.get(code, EXERCISE_TYPE_LABELS[OTHER_WORKOUT])
