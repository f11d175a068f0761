import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from app.models.allocation_report import AllocationReport, Shortfall
from app.models.calendar import DAYS_PER_WEEK
from app.models.generator_config import GeneratorConfig
from app.models.subject_requirement import SubjectRequirement
from app.models.timetable import ClassTimetable, TeacherTimetable
from app.models.timetable_data import TimetableData
from app.services.allocators import SubjectCategory, allocator_for, classify_subject, preferred_slots
from app.services.attempt import AttemptState
from app.services.ledger import AllocationLedger
from app.utils.validation import validate_timetable_data

logger = logging.getLogger(__name__)


@dataclass()
class GenerationResult:
    """Grids and allocation report of the best attempt"""

    class_timetables: List[ClassTimetable]
    teacher_timetables: List[TeacherTimetable]
    report: AllocationReport


def build_allocation_report(ledger: AllocationLedger, attempts: int, score: float) -> AllocationReport:
    """
    Summarizes a ledger into the per-subject allocation report.

    Args:
        ledger: Ledger of the retained attempt
        attempts: Number of attempts run
        score: Score of the retained attempt

    Returns:
        AllocationReport with totals, success rate and shortfalls
    """
    allocations = list(ledger.allocations.values())
    total_required = sum(allocation.required_periods for allocation in allocations)
    total_allocated = sum(allocation.allocated_periods for allocation in allocations)

    shortfalls = [
        Shortfall(
            subject_key=allocation.subject_key,
            subject=allocation.subject,
            class_name=allocation.class_name,
            deficit=allocation.shortfall
        )
        for allocation in allocations
        if allocation.shortfall > 0
    ]

    return AllocationReport(
        allocations=allocations,
        total_required=total_required,
        total_allocated=total_allocated,
        success_rate=(total_allocated / total_required * 100) if total_required else 0.0,
        shortfalls=shortfalls,
        over_allocated=[allocation.subject_key for allocation in allocations if allocation.excess > 0],
        cap_exceeded=ledger.cap_exceeded(),
        relaxed_placements=ledger.relaxed_placements,
        attempts=attempts,
        score=score
    )


def report_allocation_status(report: AllocationReport):
    """Logs the allocation report"""
    logger.info("=== ALLOCATION REPORT ===")
    logger.info(f"Total periods required: {report.total_required}")
    logger.info(f"Total periods allocated: {report.total_allocated}")
    logger.info(f"Allocation success rate: {report.success_rate:.1f}%")

    if report.shortfalls:
        logger.warning("Unallocated periods:")
        for shortfall in report.shortfalls:
            logger.warning(f"  - {shortfall.subject_key}: {shortfall.deficit} periods short")
    else:
        logger.info("All periods successfully allocated")

    for teacher, workload in report.cap_exceeded.items():
        logger.warning(f"Weekly cap exceeded for {teacher}: {workload} periods")


class TimetableGenerator:
    """
    Allocation driver: best-of-N restarts with scoring.

    Every attempt starts from empty grids and a zeroed ledger, sorts the
    subject rows so the hardest placements go first and hands each row to
    its category allocator. The attempt with the best score is kept; the
    search stops on a perfect score, or on a good-enough score once the
    minimum number of attempts has run.
    """

    def __init__(self, data: TimetableData, config: Optional[GeneratorConfig] = None):
        validate_timetable_data(data)
        self.data = data
        self.config = config or GeneratorConfig()
        self.rng = random.Random(self.config.seed)

    def generate(self) -> GenerationResult:
        config = self.config
        max_attempts = max(1, config.max_attempts) if config.randomize else 1

        best_state, best_score = None, -1.0
        attempts = 0
        for attempt in range(max_attempts):
            attempts += 1
            state = self.run_attempt(attempt)
            score = state.ledger.score()
            logger.info(f"Allocation attempt {attempt + 1}/{max_attempts}: score {score:.4f}")

            if score > best_score:
                best_state, best_score = state, score

            if score >= 1.0:
                break
            if attempts >= config.min_attempts and score >= config.good_enough_score:
                logger.info(f"Score {score:.4f} is good enough after {attempts} attempts")
                break

        report = build_allocation_report(best_state.ledger, attempts, best_score)
        report_allocation_status(report)

        result = GenerationResult(
            class_timetables=best_state.grids.class_timetables(),
            teacher_timetables=best_state.grids.teacher_timetables(),
            report=report
        )

        if config.verbose:
            from app.utils.utils import show_timetable, show_statistics
            for timetable in result.class_timetables:
                show_timetable(timetable.schedule, timetable.class_name, self.data.settings)
            show_statistics(result, self.data.settings)

        return result

    def run_attempt(self, attempt: int) -> AttemptState:
        """Runs one full allocation pass on a fresh state"""
        shuffle = attempt > 0 and self.config.randomize

        day_order = list(range(DAYS_PER_WEEK))
        if shuffle:
            self.rng.shuffle(day_order)

        state = AttemptState.fresh(self.data, day_order, allow_relaxed=self.config.relax_workload_cap)
        for row in self.prioritize(state, shuffle):
            allocator_for(row.subject).try_place(row, state)
        return state

    def prioritize(self, state: AttemptState, shuffle: bool = False) -> List[SubjectRequirement]:
        """
        Orders subject rows hardest first: labs, then more remaining periods,
        then rows with a preferred slot, then less busy staff. The first
        attempt breaks remaining ties by subject and class name; later ones
        break them at random.
        """
        rows = list(self.data.subjects)
        if shuffle:
            self.rng.shuffle(rows)
            return sorted(rows, key=lambda row: self.priority(row, state)[:4])
        return sorted(rows, key=lambda row: self.priority(row, state))

    @staticmethod
    def priority(row: SubjectRequirement, state: AttemptState) -> Tuple:
        return (
            classify_subject(row.subject) != SubjectCategory.LAB,
            -state.ledger.remaining(row),
            not preferred_slots(row, state),
            sum(state.ledger.workload(teacher) for teacher in row.staff_members),
            row.subject,
            row.class_name,
        )


def generate_timetables(data: TimetableData, config: Optional[GeneratorConfig] = None) -> GenerationResult:
    """
    Generates class and teacher timetables for the given data.

    Raises:
        InvalidTimetableInput: if the data violates the input contract
    """
    return TimetableGenerator(data, config).generate()
