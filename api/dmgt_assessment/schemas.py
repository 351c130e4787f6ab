from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

AssessmentType = Literal["Company", "Employee"]
AssessmentStatus = Literal["draft", "in-progress", "completed", "submitted"]
QuestionType = Literal[
    "text",
    "textarea",
    "select",
    "multiselect",
    "radio",
    "checkbox",
    "file",
    "rating",
    "scale",
    "number",
    "email",
    "boolean",
]

CHOICE_TYPES = {"select", "multiselect", "radio", "checkbox"}
NUMERIC_TYPES = {"number", "rating", "scale"}


class CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code uses snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class QuestionOption(CamelModel):
    value: str
    label: str


class QuestionValidation(CamelModel):
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    pattern_message: Optional[str] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    file_types: Optional[list[str]] = None
    max_file_size: Optional[float] = None


class Question(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    description: Optional[str] = None
    type: QuestionType
    required: bool = False
    options: list[QuestionOption] = Field(default_factory=list)
    validation: Optional[QuestionValidation] = None
    section: Optional[str] = None
    category: Optional[str] = None
    placeholder: Optional[str] = None
    depends_on: Optional[str] = None
    show_if: Any = None

    @field_validator("options", mode="before")
    @classmethod
    def _coerce_options(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [{"value": str(o), "label": str(o)} if not isinstance(o, dict) else o for o in v]
        return v


class QuestionSet(CamelModel):
    title: str = ""
    description: str = ""
    version: str = "1.0"
    last_updated: Optional[str] = None
    questions: list[Question] = Field(default_factory=list)


class FileReference(CamelModel):
    file_name: str
    file_key: str
    download_url: Optional[str] = None
    file_size: Optional[int] = None
    content_type: Optional[str] = None


class ValidationError(CamelModel):
    field: str
    message: str
    code: str


class ProgressInfo(CamelModel):
    completed: int = 0
    total: int = 0
    percentage: int = 0
    current_section: int = 0
    total_sections: int = 1


class SaveResponseRequest(CamelModel):
    assessment_type: AssessmentType
    company_id: str
    employee_id: Optional[str] = None
    responses: dict[str, Any] = Field(default_factory=dict)
    submit: bool = False


class FileUploadRequest(CamelModel):
    company_id: str
    question_id: str
    file_name: str
    file_content: str
    content_type: str
    assessment_type: Optional[AssessmentType] = None


class FileUploadResponse(CamelModel):
    message: str = "File uploaded successfully"
    file_key: str
    download_url: str
    file_name: str
    file_size: int = 0
    content_type: Optional[str] = None

    def to_reference(self) -> FileReference:
        return FileReference(
            file_name=self.file_name,
            file_key=self.file_key,
            download_url=self.download_url,
            file_size=self.file_size,
            content_type=self.content_type,
        )
