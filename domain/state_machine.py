from typing import Dict, FrozenSet

from domain.errors import InvalidTransitionError
from domain.schemas import SubmissionStatus, VacancyStatus

VACANCY_TRANSITIONS: Dict[VacancyStatus, FrozenSet[VacancyStatus]] = {
    VacancyStatus.PENDING: frozenset({VacancyStatus.PROCESSING, VacancyStatus.FAILED}),
    # processing -> processing: re-delivery after a worker died mid-run
    VacancyStatus.PROCESSING: frozenset({VacancyStatus.PROCESSING, VacancyStatus.ACTIVE, VacancyStatus.FAILED}),
    # a failed attempt is picked up again by the queue's retry policy
    VacancyStatus.FAILED: frozenset({VacancyStatus.PROCESSING}),
    VacancyStatus.ACTIVE: frozenset({VacancyStatus.INACTIVE}),
    VacancyStatus.INACTIVE: frozenset({VacancyStatus.ACTIVE}),
}

SUBMISSION_TRANSITIONS: Dict[SubmissionStatus, FrozenSet[SubmissionStatus]] = {
    SubmissionStatus.QUEUED: frozenset({SubmissionStatus.PROCESSING, SubmissionStatus.FAILED}),
    SubmissionStatus.PROCESSING: frozenset(
        {SubmissionStatus.PROCESSING, SubmissionStatus.COMPLETED, SubmissionStatus.FAILED}
    ),
    SubmissionStatus.FAILED: frozenset({SubmissionStatus.PROCESSING}),
    SubmissionStatus.COMPLETED: frozenset(),
}


def can_transition_vacancy(current: VacancyStatus, target: VacancyStatus) -> bool:
    return target in VACANCY_TRANSITIONS[VacancyStatus(current)]


def can_transition_submission(current: SubmissionStatus, target: SubmissionStatus) -> bool:
    return target in SUBMISSION_TRANSITIONS[SubmissionStatus(current)]


def ensure_vacancy_transition(current: VacancyStatus, target: VacancyStatus) -> None:
    if not can_transition_vacancy(current, target):
        raise InvalidTransitionError("vacancy", VacancyStatus(current).value, VacancyStatus(target).value)


def ensure_submission_transition(current: SubmissionStatus, target: SubmissionStatus) -> None:
    if not can_transition_submission(current, target):
        raise InvalidTransitionError("submission", SubmissionStatus(current).value, SubmissionStatus(target).value)
