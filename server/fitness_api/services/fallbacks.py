"""
Derived-field heuristics used by the metric transformer.

Each function fills in one field from the fields that were actually
observed. None in, None out wherever a heuristic has nothing to work with.
"""
import math
from typing import Optional, Tuple

DEFAULT_SLEEP_TARGET_HOURS = (7.0, 9.0)
OVERSLEEP_PENALTY_PER_HOUR = 0.1
SLEEP_DURATION_WEIGHT = 0.7
DEEP_SLEEP_WEIGHT = 0.3

RECOVERY_BASELINE = 85
RECOVERY_RHR_PIVOT = 60
RECOVERY_HIGH_RHR_PENALTY = 1.5

FULL_WORKOUT_MINUTES = 60
FULL_WORKOUT_CALORIES = 2500
STEP_ONLY_INTENSITY_CAP = 50
STEPS_FOR_STEP_ONLY_CAP = 10000

HRV_FLOOR = 20
HRV_CEILING = 80

KCAL_PER_GRAM_PROTEIN = 4
KCAL_PER_GRAM_CARBS = 4
KCAL_PER_GRAM_FAT = 9

# protein / carbs / fat share of total calories
MACRO_SPLITS = {
    "light": (0.25, 0.45, 0.30),
    "moderate": (0.25, 0.50, 0.25),
    "high": (0.30, 0.50, 0.20),
}


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, matching Math.round."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def estimate_hrv_from_rhr(rhr: Optional[int]) -> Optional[int]:
    """Estimate HRV as a bounded linear function of resting heart rate."""
    if rhr is None:
        return None
    return int(clamp(60 - (rhr - 60), HRV_FLOOR, HRV_CEILING))


def sleep_duration_quality(total_sleep_minutes: float) -> float:
    """
    Fraction in [0, 1] for how close sleep duration is to the target band.

    Linear ramp below 7h, full credit for 7-9h, minus 0.1 per hour over 9h.
    """
    hours = total_sleep_minutes / 60
    low, high = DEFAULT_SLEEP_TARGET_HOURS
    if hours < low:
        return max(0.0, hours / low)
    if hours <= high:
        return 1.0
    return max(0.0, 1.0 - (hours - high) * OVERSLEEP_PENALTY_PER_HOUR)


def score_sleep(total_sleep_minutes: Optional[int], deep_sleep_minutes: Optional[int]) -> Optional[int]:
    """Blend duration quality (70%) with deep-sleep ratio (30%) into 0-100."""
    if not total_sleep_minutes or total_sleep_minutes <= 0:
        return None
    deep_ratio = clamp((deep_sleep_minutes or 0) / total_sleep_minutes, 0.0, 1.0)
    quality = sleep_duration_quality(total_sleep_minutes)
    score = 100 * (SLEEP_DURATION_WEIGHT * quality + DEEP_SLEEP_WEIGHT * deep_ratio)
    return int(clamp(round_half_up(score), 0, 100))


def score_recovery(rhr: Optional[int]) -> Optional[int]:
    """Reward resting heart rate below 60, penalize it at or above 60."""
    if rhr is None:
        return None
    if rhr < RECOVERY_RHR_PIVOT:
        return min(100, RECOVERY_BASELINE + (RECOVERY_RHR_PIVOT - rhr))
    penalty = (rhr - RECOVERY_RHR_PIVOT) * RECOVERY_HIGH_RHR_PENALTY
    return max(0, round_half_up(RECOVERY_BASELINE - penalty))


def score_workout_intensity(
    activity_minutes: Optional[float], calories: int, steps: int
) -> Optional[int]:
    """
    Workout intensity 0-100.

    With exercise minutes: mean of time-based (60 min = 100%) and
    calorie-based (2500 kcal = 100%) intensity. Without them: a step-only
    estimate capped at 50.
    """
    if activity_minutes and activity_minutes > 0:
        time_intensity = min(100.0, activity_minutes / FULL_WORKOUT_MINUTES * 100)
        calorie_intensity = min(100.0, calories / FULL_WORKOUT_CALORIES * 100)
        return round_half_up((time_intensity + calorie_intensity) / 2)
    if steps > 0:
        return min(
            STEP_ONLY_INTENSITY_CAP,
            round_half_up(steps / STEPS_FOR_STEP_ONLY_CAP * STEP_ONLY_INTENSITY_CAP),
        )
    return None


def activity_level(steps: int, workout_intensity: Optional[int]) -> str:
    intensity = workout_intensity or 0
    if intensity >= 60 or steps >= 12000:
        return "high"
    if intensity >= 30 or steps >= 7000:
        return "moderate"
    return "light"


def estimate_macros(calories: int, level: str) -> Tuple[int, int, int]:
    """Split total calories into (protein, carbs, fats) grams for an activity level."""
    if calories <= 0:
        return 0, 0, 0
    protein_share, carbs_share, fat_share = MACRO_SPLITS.get(level, MACRO_SPLITS["light"])
    return (
        round_half_up(calories * protein_share / KCAL_PER_GRAM_PROTEIN),
        round_half_up(calories * carbs_share / KCAL_PER_GRAM_CARBS),
        round_half_up(calories * fat_share / KCAL_PER_GRAM_FAT),
    )
