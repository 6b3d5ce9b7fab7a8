from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


Scenario = Literal["romance", "marketplace", "cra_tax", "highway407_toll", "pig_butchering", "unknown"]
Level = Literal["low", "medium", "high"]
InconsistencyType = Literal["identity", "job", "location", "payment", "timeline", "other"]
NextStepCategory = Literal[
    "verify_identity",
    "payment_safety",
    "safe_meeting",
    "official_verification",
    "stop_contact",
    "reporting",
]


class AnalysisRequest(BaseModel):
    messages_text: str = Field(default="", description="Conversation messages pasted by the user.")
    user_context: str = Field(default="", description="User's own explanation of the situation.")
    link_url: str = Field(default="", description="Suspicious link or website.")
    extra_notes: str = Field(default="", description="Anything else the user wants to add.")
    image_url: str = Field(default="", description="Temporary blob-storage URL of an uploaded image.")

    @field_validator("messages_text", "user_context", "link_url", "extra_notes", "image_url", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    @field_validator("image_url")
    @classmethod
    def _strip_image_url(cls, value: str) -> str:
        return value.strip()


# ---------------------------------------------------------------------------
# Image fetch outcome
# ---------------------------------------------------------------------------

class InlineImage(BaseModel):
    mime_type: str = "image/jpeg"
    data: str = Field(..., description="Base64 encoded image bytes")


class FetchError(BaseModel):
    reason: str
    detail: Optional[Union[int, str]] = None


ImageFetchOutcome = Union[InlineImage, FetchError]


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class RedFlag(BaseModel):
    title: str
    severity: Level
    description: str
    evidence: list[str] = Field(default_factory=list)


class Inconsistency(BaseModel):
    type: InconsistencyType
    description: str
    why_it_matters: str
    suggested_questions: list[str] = Field(default_factory=list)


class NextStep(BaseModel):
    category: NextStepCategory
    steps: list[str] = Field(default_factory=list)


class AnalysisReport(BaseModel):
    scenario: Scenario = "unknown"
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    risk_level: Level = "low"
    summary: str = ""
    red_flags: list[RedFlag] = Field(default_factory=list)
    inconsistencies: list[Inconsistency] = Field(default_factory=list)
    next_steps: list[NextStep] = Field(default_factory=list)
    safety_notes: list[str] = Field(default_factory=list)


class AnalysisErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    raw: Optional[str] = None
