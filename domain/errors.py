from typing import Any, Optional


class EvaluatorError(Exception):
    """Base class for every error raised by the evaluator."""


class InvalidRequestError(EvaluatorError):
    """Caller input rejected synchronously; never reaches a queue."""


class NotFoundError(EvaluatorError):
    pass


class VacancyNotActiveError(InvalidRequestError):
    def __init__(self, vacancy_id: str, status: str):
        super().__init__(f"Job vacancy with ID {vacancy_id} is not active (status: {status})")
        self.vacancy_id = vacancy_id
        self.status = status


class InvalidTransitionError(EvaluatorError):
    def __init__(self, entity: str, current: str, target: str):
        super().__init__(f"Illegal {entity} transition: {current} -> {target}")
        self.entity = entity
        self.current = current
        self.target = target


class ExtractionError(EvaluatorError):
    pass


class UpstreamError(EvaluatorError):
    """Embedding / LLM provider failure or missing provider configuration."""


class LLMParseError(EvaluatorError):
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.details = details
