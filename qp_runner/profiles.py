"""Profile kinds exposed by the target's pprof endpoint and their capture phases."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Sequence

CPU_PROFILE = "profile"


class CapturePhase(str, Enum):
    """Point in the session timeline at which profiles are sampled."""

    BASE = "base"
    CONCURRENT = "concurrent"
    FINAL = "final"

    @property
    def prefix(self) -> str:
        if self is CapturePhase.FINAL:
            return ""
        return f"{self.value}-"


@dataclass(frozen=True)
class ProfileSpec:
    """Static descriptor for one profile kind."""

    name: str
    filename: str
    debug: int = 0
    concurrent: bool = False

    @property
    def is_cpu(self) -> bool:
        return self.name == CPU_PROFILE

    def for_phase(self, phase: CapturePhase) -> "ProfileSpec":
        return replace(self, filename=f"{phase.prefix}{self.filename}")


@dataclass(frozen=True)
class CapturedProfile:
    """Raw payload for one profile kind captured during one phase."""

    name: str
    filename: str
    payload: bytes
    phase: CapturePhase
    captured_at: float = 0.0


# cpu must always be the first profile.
DEFAULT_PROFILES: tuple[ProfileSpec, ...] = (
    ProfileSpec(CPU_PROFILE, "cpu.pb.gz", concurrent=True),
    ProfileSpec("block", "block.txt", debug=1),
    ProfileSpec("goroutine", "goroutine.txt", debug=1, concurrent=True),
    ProfileSpec("heap", "heap.pb.gz", debug=1),
    ProfileSpec("mutex", "mutex.txt", debug=1),
)


def select_profiles(
    include_cpu: bool, profiles: Sequence[ProfileSpec] = DEFAULT_PROFILES
) -> tuple[ProfileSpec, ...]:
    """Return the ordered profile list for a session, dropping CPU when disabled."""
    specs = tuple(profiles)
    if specs and not specs[0].is_cpu and any(spec.is_cpu for spec in specs):
        raise ValueError("the cpu profile must come first in the profile list")
    if include_cpu:
        return specs
    return tuple(spec for spec in specs if not spec.is_cpu)


def phase_specs(
    profiles: Sequence[ProfileSpec], phase: CapturePhase
) -> tuple[ProfileSpec, ...]:
    """Derive the phase-scoped copies of a profile list.

    The concurrent phase only keeps the kinds flagged ``concurrent``.
    """
    return tuple(
        spec.for_phase(phase)
        for spec in profiles
        if phase is not CapturePhase.CONCURRENT or spec.concurrent
    )
