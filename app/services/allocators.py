import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from app.models.calendar import DAYS, PeriodKind, day_index
from app.models.schedule_settings import ScheduleSettings
from app.models.subject_requirement import SubjectRequirement
from app.services.attempt import AttemptState

logger = logging.getLogger(__name__)

Slot = Tuple[int, int]  # (day index, period number)

LAB_KEYWORDS = ("lab", "practical", "workshop")
LIBRARY_KEYWORDS = ("library",)
GAMES_KEYWORDS = ("games", "sports", "physical education", "physical training", "athletics", "yoga")

# Share of the day's periods counted as "late" for each category
LIBRARY_LATE_SHARE = 0.3
GAMES_LATE_SHARE = 0.4


class SubjectCategory(str, Enum):
    LAB = "lab"
    LIBRARY = "library"
    GAMES = "games"
    REGULAR = "regular"


def classify_subject(subject: str) -> SubjectCategory:
    """Classifies a subject by case-insensitive keyword match on its name"""
    name = subject.lower()
    if any(keyword in name for keyword in LAB_KEYWORDS):
        return SubjectCategory.LAB
    if any(keyword in name for keyword in LIBRARY_KEYWORDS):
        return SubjectCategory.LIBRARY
    if any(keyword in name for keyword in GAMES_KEYWORDS):
        return SubjectCategory.GAMES
    return SubjectCategory.REGULAR


def late_periods(settings: ScheduleSettings, share: float) -> List[int]:
    """
    Teaching periods in the latest `share` of the day (at least the last period).

    Returns:
        Period numbers, latest first
    """
    count = max(1, round(settings.total_periods_per_day * share))
    start = settings.total_periods_per_day - count + 1
    return [period for period in reversed(settings.teaching_periods()) if period >= start]


def preferred_slots(requirement: SubjectRequirement, state: AttemptState) -> List[Slot]:
    """
    Preferred slots of a subject row: its own preferred day/period first, then
    the preferences of its staff that apply to its class.
    """
    slots = []
    total = state.settings.total_periods_per_day

    if requirement.preferred_day and requirement.preferred_period:
        day = day_index(requirement.preferred_day)
        if day is not None and 1 <= requirement.preferred_period <= total:
            slots.append((day, requirement.preferred_period))

    for preference in state.teacher_preferences:
        applies = any(
            preference.applies_to(teacher, requirement.class_name)
            for teacher in requirement.staff_members
        )
        if not applies:
            continue
        day = day_index(preference.preferred_day)
        if day is not None and 1 <= preference.preferred_period <= total:
            slot = (day, preference.preferred_period)
            if slot not in slots:
                slots.append(slot)

    return slots


@dataclass()
class PlacementResult:
    """
    Outcome of one allocator call.

    Attributes:
        requirement: Subject row that was placed
        slots: (day, period) pairs placed by this call
        relaxed: How many of those bypassed the weekly cap
        remaining: Periods still missing after the call
    """
    requirement: SubjectRequirement
    slots: List[Slot] = field(default_factory=list)
    relaxed: int = 0
    remaining: int = 0

    @property
    def placed(self) -> int:
        return len(self.slots)

    @property
    def complete(self) -> bool:
        return self.remaining == 0


class Allocator:
    """Placement strategy of one subject category"""

    category: SubjectCategory = SubjectCategory.REGULAR

    def try_place(self, requirement: SubjectRequirement, state: AttemptState) -> PlacementResult:
        raise NotImplementedError

    @staticmethod
    def strictness_levels(state: AttemptState) -> Sequence[bool]:
        return (True, False) if state.allow_relaxed else (True,)

    @staticmethod
    def commit(requirement: SubjectRequirement, state: AttemptState, day: int, period: int,
               result: PlacementResult):
        """Writes one period into both grid families and the ledger"""
        relaxed = not state.ledger.has_capacity(requirement.staff_members, 1)
        state.grids.assign(day, period, requirement)
        state.ledger.record(requirement, day, period, relaxed=relaxed)
        result.slots.append((day, period))
        if relaxed:
            result.relaxed += 1

    @staticmethod
    def finish(requirement: SubjectRequirement, state: AttemptState, result: PlacementResult) -> PlacementResult:
        allocation = state.ledger.allocation(requirement)
        result.remaining = allocation.remaining
        if result.remaining:
            logger.warning(
                f"Could not allocate {result.remaining} period(s) for {requirement.subject} "
                f"in {requirement.class_name}. "
                f"Allocated: {allocation.allocated_periods}/{allocation.required_periods}"
            )
        return result


class LabAllocator(Allocator):
    """
    Places all periods of a lab as one uninterrupted run on a single day.

    A run may span break periods but stops at lunch. A class never gets two
    different lab subjects on the same day. If no day fits the whole block
    the lab is left short; it is never split across days.
    """

    category = SubjectCategory.LAB

    def try_place(self, requirement: SubjectRequirement, state: AttemptState) -> PlacementResult:
        result = PlacementResult(requirement)
        needed = state.ledger.remaining(requirement)
        if needed == 0:
            return result

        staff = requirement.staff_members
        for strict in self.strictness_levels(state):
            if strict and not state.oracle.has_capacity(staff, needed):
                continue
            block = self.find_block(requirement, state, needed, strict)
            if block is None:
                continue

            day, periods = block
            for period in periods:
                self.commit(requirement, state, day, period, result)
            logger.info(
                f"Allocated {needed} consecutive lab periods for {requirement.subject} "
                f"in {requirement.class_name} on {DAYS[day]}"
            )
            break

        return self.finish(requirement, state, result)

    def find_block(self, requirement: SubjectRequirement, state: AttemptState,
                   needed: int, strict: bool) -> Optional[Tuple[int, List[int]]]:
        """
        Finds the first day holding `needed` consecutive available periods.

        Returns:
            (day, periods) or None if no single day fits the block
        """
        settings = state.settings
        for day in state.day_order:
            if self.holds_other_lab(requirement, state, day):
                continue

            run = []
            for period in range(1, settings.total_periods_per_day + 1):
                kind = settings.period_kind(period)
                if kind == PeriodKind.BREAK:
                    continue
                if kind == PeriodKind.LUNCH:
                    run = []
                    continue

                if state.oracle.is_available(day, period, requirement.class_name,
                                             requirement.staff_members, strict=strict):
                    run.append(period)
                    if len(run) == needed:
                        return day, run
                else:
                    run = []
        return None

    @staticmethod
    def holds_other_lab(requirement: SubjectRequirement, state: AttemptState, day: int) -> bool:
        return any(
            subject != requirement.subject and classify_subject(subject) == SubjectCategory.LAB
            for subject in state.grids.class_day_subjects(requirement.class_name, day)
        )


class LibraryAllocator(Allocator):
    """
    Places library periods, preferring late periods.

    The library is a single institution-wide resource: at most one class
    holds it at any day/period.
    """

    category = SubjectCategory.LIBRARY

    def try_place(self, requirement: SubjectRequirement, state: AttemptState) -> PlacementResult:
        result = PlacementResult(requirement)
        late = set(late_periods(state.settings, LIBRARY_LATE_SHARE))

        for strict in self.strictness_levels(state):
            while state.ledger.remaining(requirement) > 0:
                slot = self.best_slot(requirement, state, late, strict)
                if slot is None:
                    break
                day, period = slot
                self.commit(requirement, state, day, period, result)
                state.ledger.occupy_library(day, period, requirement.class_name)

        return self.finish(requirement, state, result)

    @staticmethod
    def best_slot(requirement: SubjectRequirement, state: AttemptState,
                  late: set, strict: bool) -> Optional[Slot]:
        used_days = {
            day for day in state.day_order
            if requirement.subject in state.grids.class_day_subjects(requirement.class_name, day)
        }
        best, best_rank = None, None
        for day in state.day_order:
            for period in state.settings.teaching_periods():
                if not state.oracle.is_library_free(day, period):
                    continue
                if not state.oracle.is_available(day, period, requirement.class_name,
                                                 requirement.staff_members, strict=strict):
                    continue
                rank = (period not in late, day in used_days)
                if best_rank is None or rank < best_rank:
                    best, best_rank = (day, period), rank
        return best


class GamesAllocator(Allocator):
    """
    Places games/sports periods as late in the day as possible.

    The last period of each day is tried first, then the rest of the late
    window, avoiding two games periods on one day while another day is open.
    Any teaching period, latest first, is the last resort.
    """

    category = SubjectCategory.GAMES

    def try_place(self, requirement: SubjectRequirement, state: AttemptState) -> PlacementResult:
        result = PlacementResult(requirement)

        for strict in self.strictness_levels(state):
            while state.ledger.remaining(requirement) > 0:
                slot = self.next_slot(requirement, state, strict)
                if slot is None:
                    break
                self.commit(requirement, state, slot[0], slot[1], result)

        return self.finish(requirement, state, result)

    @staticmethod
    def next_slot(requirement: SubjectRequirement, state: AttemptState, strict: bool) -> Optional[Slot]:
        window = [
            (day, period)
            for period in late_periods(state.settings, GAMES_LATE_SHARE)
            for day in state.day_order
        ]
        fallback = [
            (day, period)
            for period in reversed(state.settings.teaching_periods())
            for day in state.day_order
        ]

        for avoid_same_day, candidates in ((True, window), (False, window), (False, fallback)):
            for day, period in candidates:
                if avoid_same_day and requirement.subject in state.grids.class_day_subjects(
                        requirement.class_name, day):
                    continue
                if state.oracle.is_available(day, period, requirement.class_name,
                                             requirement.staff_members, strict=strict):
                    return day, period
        return None


class RegularAllocator(Allocator):
    """
    Places ordinary subjects one period at a time, avoiding the same
    period-of-day on more than one day for a class.

    Order of search per period: preferred slots, best-scored slot on an
    unused period-of-day, best-scored slot on any period-of-day, and finally
    (when relaxation is allowed) any slot regardless of the weekly cap.
    """

    category = SubjectCategory.REGULAR

    def try_place(self, requirement: SubjectRequirement, state: AttemptState) -> PlacementResult:
        result = PlacementResult(requirement)

        while state.ledger.remaining(requirement) > 0:
            slot = self.find_slot(requirement, state)
            if slot is None:
                break
            self.commit(requirement, state, slot[0], slot[1], result)

        return self.finish(requirement, state, result)

    def find_slot(self, requirement: SubjectRequirement, state: AttemptState) -> Optional[Slot]:
        used = state.ledger.used_periods(requirement)

        for day, period in preferred_slots(requirement, state):
            if period not in used and state.oracle.is_available(
                    day, period, requirement.class_name, requirement.staff_members):
                return day, period

        slot = self.best_scored_slot(requirement, state, avoid_repetition=True, strict=True)
        if slot is None:
            slot = self.best_scored_slot(requirement, state, avoid_repetition=False, strict=True)
            if slot is not None:
                logger.debug(f"{requirement.subject} in {requirement.class_name} repeats period {slot[1]}")
        if slot is None and state.allow_relaxed:
            slot = self.best_scored_slot(requirement, state, avoid_repetition=False, strict=False)
        return slot

    def best_scored_slot(self, requirement: SubjectRequirement, state: AttemptState,
                         avoid_repetition: bool, strict: bool) -> Optional[Slot]:
        used = state.ledger.used_periods(requirement)
        best, best_score = None, None
        for day in state.day_order:
            for period in state.settings.teaching_periods():
                if avoid_repetition and period in used:
                    continue
                if not state.oracle.is_available(day, period, requirement.class_name,
                                                 requirement.staff_members, strict=strict):
                    continue
                score = self.slot_score(requirement, state, day, period)
                if best_score is None or score > best_score:
                    best, best_score = (day, period), score
        return best

    @staticmethod
    def slot_score(requirement: SubjectRequirement, state: AttemptState, day: int, period: int) -> int:
        """
        Scores a legal slot; higher is better.

        Rewards earlier periods, days with fewer classes for the class and its
        teachers, and periods-of-day this subject has not used yet; penalizes
        back-to-back periods for a teacher.
        """
        grids = state.grids
        total = state.settings.total_periods_per_day

        score = 100
        score += (10 - (period - 1)) * 5
        score -= grids.class_day_load(requirement.class_name, day) * 10

        for teacher in requirement.staff_members:
            score -= grids.teacher_day_load(teacher, day) * 8
            if period > 1 and not grids.teacher_slot(teacher, day, period - 1).is_free:
                score -= 15
            if period < total and not grids.teacher_slot(teacher, day, period + 1).is_free:
                score -= 15

        if period not in state.ledger.used_periods(requirement):
            score += 100

        return score


ALLOCATORS: Dict[SubjectCategory, Allocator] = {
    SubjectCategory.LAB: LabAllocator(),
    SubjectCategory.LIBRARY: LibraryAllocator(),
    SubjectCategory.GAMES: GamesAllocator(),
    SubjectCategory.REGULAR: RegularAllocator(),
}


def allocator_for(subject: str) -> Allocator:
    return ALLOCATORS[classify_subject(subject)]
