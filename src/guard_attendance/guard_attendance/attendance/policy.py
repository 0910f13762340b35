"""Biometric verification policy.

The matcher itself is an external collaborator; this module only sees the
0-100 confidence score it produces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from ..common.validators import require_score
from ..core.constants import DEFAULT_BIOMETRIC_THRESHOLD
from ..core.enums import AttendanceStatus


class BiometricCapture(Protocol):
    """Narrow capability over a fingerprint/face sensor."""

    def capture(self) -> int:
        raise NotImplementedError


@dataclass(frozen=True)
class PolicyDecision:
    accepted: bool
    status: AttendanceStatus
    score: int
    threshold: int


def evaluate(confidence_score: Any, threshold: Any = DEFAULT_BIOMETRIC_THRESHOLD) -> PolicyDecision:
    """Accept iff score >= threshold.

    Raises ValidationError when either value is not a whole number in [0, 100].
    """
    score = require_score(confidence_score, "biometricScore")
    limit = require_score(threshold, "threshold")
    accepted = score >= limit
    return PolicyDecision(
        accepted=accepted,
        status=AttendanceStatus.VERIFIED if accepted else AttendanceStatus.EXCEPTION,
        score=score,
        threshold=limit,
    )


def evaluate_capture(capture: BiometricCapture, threshold: Any = DEFAULT_BIOMETRIC_THRESHOLD) -> PolicyDecision:
    return evaluate(capture.capture(), threshold)
