from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobType(str, Enum):
    CV_ONLY = "cv_only"
    CV_WITH_TEST = "cv_with_test"


class VacancyStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    ACTIVE = "active"
    INACTIVE = "inactive"
    FAILED = "failed"


class SubmissionStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class DocumentType(str, Enum):
    JOB_DESCRIPTION = "job_description"
    CV_RUBRIC = "cv_rubric"
    CASE_STUDY_BRIEF = "case_study_brief"
    PROJECT_RUBRIC = "project_rubric"


class FileCategory(str, Enum):
    CV = "cv"
    REPORT = "report"
    JOB_DESCRIPTION = "job_description"
    CV_RUBRIC = "cv_rubric"
    CASE_STUDY_BRIEF = "case_study_brief"
    PROJECT_RUBRIC = "project_rubric"


REQUIRED_DOCUMENTS: Dict[JobType, List[DocumentType]] = {
    JobType.CV_ONLY: [DocumentType.JOB_DESCRIPTION, DocumentType.CV_RUBRIC],
    JobType.CV_WITH_TEST: [
        DocumentType.JOB_DESCRIPTION,
        DocumentType.CV_RUBRIC,
        DocumentType.CASE_STUDY_BRIEF,
        DocumentType.PROJECT_RUBRIC,
    ],
}


# ---- standardized rubrics -------------------------------------------------

class RubricParameter(BaseModel):
    weight: float = Field(..., ge=0.0, le=1.0)
    criteria: str = Field(..., min_length=1)
    scale: Dict[int, str]

    @field_validator("scale")
    @classmethod
    def _five_point_scale(cls, value: Dict[int, str]) -> Dict[int, str]:
        if sorted(value) != [1, 2, 3, 4, 5]:
            raise ValueError("scale must define exactly the scores 1..5")
        return value


class Rubric(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @classmethod
    def parameter_names(cls) -> List[str]:
        return list(cls.model_fields)

    def weights(self) -> Dict[str, float]:
        return {name: getattr(self, name).weight for name in self.parameter_names()}

    def weight_total(self) -> float:
        return sum(self.weights().values())

    def renormalized(self) -> "Rubric":
        total = self.weight_total()
        data = self.model_dump()
        for name in self.parameter_names():
            data[name]["weight"] = data[name]["weight"] / total
        return type(self).model_validate(data)


class CvRubric(Rubric):
    technical_skills: RubricParameter
    experience_level: RubricParameter
    achievements: RubricParameter
    cultural_fit: RubricParameter


class ProjectRubric(Rubric):
    correctness: RubricParameter
    code_quality: RubricParameter
    resilience: RubricParameter
    documentation: RubricParameter
    creativity: RubricParameter


StandardizedRubric = Union[CvRubric, ProjectRubric]

CV_TARGET_WEIGHTS = {
    "technical_skills": 0.4,
    "experience_level": 0.25,
    "achievements": 0.2,
    "cultural_fit": 0.15,
}
PROJECT_TARGET_WEIGHTS = {
    "correctness": 0.3,
    "code_quality": 0.25,
    "resilience": 0.2,
    "documentation": 0.15,
    "creativity": 0.1,
}


# ---- retrieval ------------------------------------------------------------

class Chunk(BaseModel):
    text: str
    source_document_id: str
    index: int
    total_chunks: int
    vacancy_id: str
    document_type: DocumentType
    source: str = ""


class RetrievedChunk(BaseModel):
    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    similarity: Optional[float] = None


class EvaluationQueries(BaseModel):
    cv_queries: List[str] = Field(default_factory=list)
    project_queries: Optional[List[str]] = None


# ---- LLM output payloads --------------------------------------------------

Score = Annotated[int, Field(ge=1, le=5)]


class CVEvaluationPayload(BaseModel):
    technical_skills: Score
    experience_level: Score
    achievements: Score
    cultural_fit: Score
    feedback: str

    def scores(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in CV_TARGET_WEIGHTS}


class ProjectEvaluationPayload(BaseModel):
    is_relevant: bool = True
    correctness: Optional[Any] = None
    code_quality: Optional[Any] = None
    resilience: Optional[Any] = None
    documentation: Optional[Any] = None
    creativity: Optional[Any] = None
    feedback: str = ""


class SummaryPayload(BaseModel):
    overall_summary: str = Field(..., min_length=1)


# ---- results --------------------------------------------------------------

class EvaluationResult(BaseModel):
    cv_match_rate: float = Field(..., ge=0.0, le=1.0)
    cv_feedback: str
    cv_detailed_scores: Dict[str, int]
    project_score: Optional[float] = Field(default=None, ge=0.0, le=5.0)
    project_feedback: Optional[str] = None
    project_detailed_scores: Optional[Dict[str, int]] = None
    overall_summary: str

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---- produced interface ---------------------------------------------------

class UploadResponse(BaseModel):
    cv_id: Optional[str] = None
    report_id: Optional[str] = None


class EvaluateRequest(BaseModel):
    vacancy_id: str = Field(..., min_length=1)
    cv_id: str = Field(..., min_length=1)
    report_id: Optional[str] = None


class VacancyCreated(BaseModel):
    vacancy_id: str
    status: VacancyStatus


class VacancyStatusUpdate(BaseModel):
    status: VacancyStatus


class VacancyView(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    type: JobType
    status: VacancyStatus
    error: Optional[str] = None
    has_standardized_cv_rubric: bool = False
    has_standardized_project_rubric: bool = False
    documents: Optional[Dict[str, Optional[str]]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JobStatusResponse(BaseModel):
    id: str
    status: SubmissionStatus
    result: Optional[Dict] = None
    error: Optional[str] = None
