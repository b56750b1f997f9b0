"""Edit point allowance rules.

Every function here is pure: callers pass in the current counters and get a
decision back. Rejections are values, never exceptions, so the UI can show the
reason verbatim next to the disabled control.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from hotspot_editor.domain.hotspots import Hotspot

MAX_EDITS_PER_IMAGE = 3
MAX_HOTSPOTS_PER_SESSION = 2
MAX_TOTAL_HOTSPOTS_PER_SESSION = 6
MAX_SESSIONS = 3

EDIT_LIMIT = "edit_limit"
PHASE_LIMIT = "phase_limit"
SESSION_LIMIT = "session_limit"
SESSION_QUOTA = "session_quota"
NO_HOTSPOTS = "no_hotspots"
MISSING_DESCRIPTIONS = "missing_descriptions"


@dataclass(frozen=True)
class EditLimits:
    """Configurable caps on edits, hotspots and sessions."""

    max_edits_per_image: int = MAX_EDITS_PER_IMAGE
    max_hotspots_per_session: int = MAX_HOTSPOTS_PER_SESSION
    max_total_hotspots_per_session: int = MAX_TOTAL_HOTSPOTS_PER_SESSION
    max_sessions: int = MAX_SESSIONS


DEFAULT_LIMITS = EditLimits()


@dataclass(frozen=True)
class LimitDecision:
    """Whether another hotspot may be added, and why not."""

    can_add: bool
    reason: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class ProcessDecision:
    """Whether the current hotspots may be submitted for processing."""

    can_process: bool
    reason: str | None = None
    code: str | None = None
    valid_hotspots: list[Hotspot] = field(default_factory=list)


def edit_limit_reason(limits: EditLimits = DEFAULT_LIMITS) -> str:
    return (
        f"Maximum {limits.max_edits_per_image} edits allowed per image. "
        "Please upload a new image to continue editing."
    )


def can_add_hotspot(
    *,
    edit_count: int = 0,
    hotspot_count: int = 0,
    total_hotspots_in_session: int = 0,
    has_active_session: bool = False,
    limits: EditLimits = DEFAULT_LIMITS,
) -> LimitDecision:
    """Check whether the user may place another edit point."""
    if edit_count >= limits.max_edits_per_image:
        return LimitDecision(
            can_add=False, reason=edit_limit_reason(limits), code=EDIT_LIMIT
        )

    # Without an active session the caller creates one with the new hotspot.
    if not has_active_session:
        return LimitDecision(can_add=True)

    if hotspot_count >= limits.max_hotspots_per_session:
        return LimitDecision(
            can_add=False,
            reason=(
                f"You've added {limits.max_hotspots_per_session} edit points. "
                'Click "Process" to apply your changes.'
            ),
            code=PHASE_LIMIT,
        )

    if total_hotspots_in_session >= limits.max_total_hotspots_per_session:
        return LimitDecision(
            can_add=False,
            reason=(
                f"Maximum {limits.max_total_hotspots_per_session} edit points "
                "allowed per session. Please process your edits."
            ),
            code=SESSION_LIMIT,
        )

    return LimitDecision(can_add=True)


def can_start_session(
    sessions_used: int, limits: EditLimits = DEFAULT_LIMITS
) -> LimitDecision:
    """Check whether another edit session may be opened this visit."""
    if sessions_used >= limits.max_sessions:
        return LimitDecision(
            can_add=False,
            reason=f"You've used all {limits.max_sessions} edit sessions for this visit.",
            code=SESSION_QUOTA,
        )
    return LimitDecision(can_add=True)


def can_process_edits(
    *,
    edit_count: int,
    hotspots: Sequence[Hotspot],
    limits: EditLimits = DEFAULT_LIMITS,
) -> ProcessDecision:
    """Check whether the hotspots may be sent to the retouch service."""
    if edit_count >= limits.max_edits_per_image:
        return ProcessDecision(
            can_process=False, reason=edit_limit_reason(limits), code=EDIT_LIMIT
        )

    valid_hotspots = [hotspot for hotspot in hotspots if hotspot.has_prompt]
    if not valid_hotspots:
        if not hotspots:
            return ProcessDecision(
                can_process=False,
                reason="Please add edit points to your image first.",
                code=NO_HOTSPOTS,
            )
        return ProcessDecision(
            can_process=False,
            reason="Please add descriptions to your edit points.",
            code=MISSING_DESCRIPTIONS,
        )

    return ProcessDecision(can_process=True, valid_hotspots=valid_hotspots)


def remaining_edits(edit_count: int, limits: EditLimits = DEFAULT_LIMITS) -> int:
    """Return how many processed batches the image still allows."""
    return max(0, limits.max_edits_per_image - edit_count)


def remaining_hotspots(
    hotspot_count: int, limits: EditLimits = DEFAULT_LIMITS
) -> int:
    """Return how many hotspots the current phase still allows."""
    return max(0, limits.max_hotspots_per_session - hotspot_count)
