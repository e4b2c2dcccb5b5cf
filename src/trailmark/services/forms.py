"""Session form input handling.

The form widget hands over raw strings. This module coerces them to numbers
and validates them before any session is built.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from trailmark.models.session import SessionKind

INVALID_INPUT_MESSAGE = "Inputs have to be positive numbers!"


class ValidationError(ValueError):
    """Raised when form input is not finite or not positive."""


@dataclass
class FormSubmission:
    """Raw values submitted from the session form."""

    kind: str
    distance: str
    duration: str
    cadence: str = ""
    elevation: str = ""


@dataclass(frozen=True)
class ValidatedInput:
    """Form values that passed validation."""

    kind: SessionKind
    distance_km: float
    duration_min: float
    value: float  # cadence for running, elevation gain for cycling


def coerce_number(raw: str | float | None) -> float:
    """Convert a raw form value to a float.

    Blank values count as zero. Unparsable values become NaN so they fail the
    finiteness check.

    Args:
        raw: Raw input value.

    Returns:
        Parsed number, 0.0 or NaN.
    """
    if raw is None:
        return math.nan
    if isinstance(raw, int | float):
        return float(raw)
    text = raw.strip()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return math.nan


def all_finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


def all_positive(*values: float) -> bool:
    return all(v > 0 for v in values)


def validate_submission(submission: FormSubmission) -> ValidatedInput:
    """Validate a form submission.

    Distance, duration and cadence must be finite and positive. Elevation gain
    only has to be finite, since a route can lose height overall.

    Args:
        submission: Raw form values.

    Returns:
        Validated numeric input.

    Raises:
        ValidationError: If the kind is unknown or a number is invalid.
    """
    try:
        kind = SessionKind(submission.kind.strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown session type: {submission.kind!r}") from None

    distance = coerce_number(submission.distance)
    duration = coerce_number(submission.duration)

    if kind is SessionKind.RUNNING:
        cadence = coerce_number(submission.cadence)
        if not all_finite(distance, duration, cadence) or not all_positive(
            distance, duration, cadence
        ):
            raise ValidationError(INVALID_INPUT_MESSAGE)
        return ValidatedInput(kind, distance, duration, cadence)

    # TODO: confirm with product whether negative elevation gain should be rejected
    elevation = coerce_number(submission.elevation)
    if not all_finite(distance, duration, elevation) or not all_positive(distance, duration):
        raise ValidationError(INVALID_INPUT_MESSAGE)
    return ValidatedInput(kind, distance, duration, elevation)
