"""Interactive, gesture-driven adjustment of decline parameters.

A drag on a phase's curve is modelled as an explicit session:

    Idle --start--> Dragging(session) --end / modifier released--> Idle

While dragging, every update maps the vertical pointer displacement from
the gesture origin to a new parameter value. Values are always derived
from the origin snapshot, so returning the pointer to its origin restores
the starting parameters exactly.

Modifier keys select the target parameter:
- none or "q": initial rate qi (linear, per pixel)
- "d": decline d (proportional, fine-grained)
- "b": exponent b (linear, clamped to [0, 1]); optionally rescales d so
  the infinite-horizon EUR is preserved
"""

import logging
from dataclasses import dataclass, field
from typing import Literal

from decline_engine.config import DragConfig
from decline_engine.dca.models import DeclineParameters

logger = logging.getLogger(__name__)

ParamKind = Literal["qi", "b", "d", "b+d"]

MODIFIER_TARGETS: dict[str | None, ParamKind] = {
    None: "qi",
    "q": "qi",
    "d": "d",
    "b": "b",
}


def normalize_modifier(modifier: str | None) -> str | None:
    """Lower-case a modifier key and check it is supported."""
    if modifier is not None:
        modifier = modifier.lower()
    if modifier not in MODIFIER_TARGETS:
        raise ValueError(f"Unknown modifier key: {modifier!r}")
    return modifier


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def adjust_for_drag(
    kind: ParamKind,
    dy: float,
    origin: DeclineParameters,
    config: DragConfig,
) -> DeclineParameters:
    """Map a pointer displacement to new parameters.

    Args:
        kind: Target parameter(s)
        dy: Vertical displacement in pixels from the gesture origin
        origin: Parameters when the gesture started
        config: Drag sensitivities and bounds

    Returns:
        Adjusted parameters; ``origin`` itself when ``dy == 0``
    """
    if dy == 0:
        return origin

    if kind == "qi":
        return origin.with_changes(qi=max(config.qi_min, origin.qi - dy * config.qi_per_pixel))

    if kind == "d":
        d = origin.d * (1 - dy * config.d_per_pixel)
        return origin.with_changes(d=_clamp(d, *config.d_bounds))

    b = _clamp(origin.b + dy * config.b_per_pixel, *config.b_bounds)
    if kind == "b":
        return origin.with_changes(b=b)

    # b+d: keep qi / (d * (1 - b)) constant. No finite EUR to hold at b >= 1.
    if origin.b >= 1 or origin.d <= 0:
        return origin.with_changes(b=b)

    # Limit b to the range where the rescaled d stays inside d_bounds
    d_lo, d_hi = config.d_bounds
    held = (1 - origin.b) * origin.d
    b_max = max(origin.b, 1 - held / d_hi)
    b_min = min(origin.b, 1 - held / d_lo)
    b = _clamp(b, b_min, b_max)
    if b == origin.b or b >= 1:
        return origin.with_changes(b=b)

    d = _clamp(held / (1 - b), d_lo, d_hi)
    return origin.with_changes(b=b, d=d)


@dataclass
class DragSession:
    """One continuous drag gesture on a single phase."""

    phase: str
    param_kind: ParamKind
    origin_params: DeclineParameters
    origin_position: float
    modifier: str | None = None
    config: DragConfig = field(default_factory=DragConfig)
    current_params: DeclineParameters | None = None
    active: bool = True

    @classmethod
    def start(
        cls,
        phase: str,
        params: DeclineParameters,
        position: float,
        modifier: str | None = None,
        config: DragConfig | None = None,
    ) -> "DragSession":
        """Snapshot ``params`` and the pointer position at gesture start."""
        if config is None:
            config = DragConfig()

        modifier = normalize_modifier(modifier)
        kind = MODIFIER_TARGETS[modifier]
        if kind == "b" and config.couple_b_and_d:
            kind = "b+d"

        return cls(
            phase=phase,
            param_kind=kind,
            origin_params=params,
            origin_position=position,
            modifier=modifier,
            config=config,
            current_params=params,
        )

    def update(self, position: float) -> DeclineParameters:
        """Parameters for the pointer at ``position``."""
        if not self.active:
            return self.current_params

        dy = position - self.origin_position
        self.current_params = adjust_for_drag(self.param_kind, dy, self.origin_params, self.config)
        return self.current_params

    def end(self) -> DeclineParameters:
        """Close the session; the last computed parameters stay in effect."""
        self.active = False
        return self.current_params


class PhaseParameterStore:
    """Per-phase decline parameters plus the auto-fit flag of each phase.

    Auto-fit is on for every phase until a manual edit disables it, and
    stays off until ``reset_auto_fit`` is called.
    """

    def __init__(self) -> None:
        self._params: dict[str, DeclineParameters] = {}
        self._manual: set[str] = set()

    def __contains__(self, phase: str) -> bool:
        return phase in self._params

    def __len__(self) -> int:
        return len(self._params)

    def get(self, phase: str) -> DeclineParameters | None:
        return self._params.get(phase)

    def set(self, phase: str, params: DeclineParameters) -> None:
        self._params[phase] = params

    def discard(self, phase: str) -> None:
        self._params.pop(phase, None)
        self._manual.discard(phase)

    def clear(self) -> None:
        self._params.clear()
        self._manual.clear()

    def phases(self) -> list[str]:
        return list(self._params)

    def as_dict(self) -> dict[str, DeclineParameters]:
        return dict(self._params)

    def is_auto_fit(self, phase: str) -> bool:
        return phase not in self._manual

    def disable_auto_fit(self, phase: str) -> None:
        self._manual.add(phase)

    def reset_auto_fit(self, phase: str | None = None) -> None:
        if phase is None:
            self._manual.clear()
        else:
            self._manual.discard(phase)


class AdjustmentEngine:
    """Routes gesture events to per-phase drag sessions.

    At most one session is active per phase; sessions on different phases
    are independent.
    """

    def __init__(self, store: PhaseParameterStore, config: DragConfig | None = None) -> None:
        self.store = store
        self.config = config or DragConfig()
        self._sessions: dict[str, DragSession] = {}

    def active_session(self, phase: str) -> DragSession | None:
        return self._sessions.get(phase)

    @property
    def active_phases(self) -> list[str]:
        return list(self._sessions)

    def start(self, phase: str, position: float, modifier: str | None = None) -> DragSession | None:
        """Begin a gesture on ``phase``.

        Disables auto-fit for the phase. Returns None when the phase has no
        parameters to adjust.
        """
        params = self.store.get(phase)
        if params is None:
            logger.warning(f"Cannot start drag on phase '{phase}': no parameters")
            return None

        if phase in self._sessions:
            logger.debug(f"Replacing stale drag session on phase '{phase}'")

        session = DragSession.start(phase, params, position, modifier=modifier, config=self.config)
        self._sessions[phase] = session
        self.store.disable_auto_fit(phase)
        logger.debug(f"Drag started on '{phase}' targeting {session.param_kind}")
        return session

    def update(self, phase: str, position: float) -> DeclineParameters | None:
        """Apply a pointer update; no-op (None) without an active session."""
        session = self._sessions.get(phase)
        if session is None:
            return None

        params = session.update(position)
        self.store.set(phase, params)
        return params

    def end(self, phase: str) -> DeclineParameters | None:
        session = self._sessions.pop(phase, None)
        if session is None:
            return None
        logger.debug(f"Drag ended on '{phase}'")
        return session.end()

    def release_modifier(self, modifier: str | None = None) -> list[str]:
        """End sessions started with ``modifier`` (all sessions when None).

        Returns the phases whose sessions were ended.
        """
        if modifier is not None:
            modifier = normalize_modifier(modifier)

        ended = [
            phase
            for phase, session in self._sessions.items()
            if modifier is None or session.modifier == modifier
        ]
        for phase in ended:
            self.end(phase)
        return ended

    def cancel_all(self) -> None:
        for phase in list(self._sessions):
            self.end(phase)
