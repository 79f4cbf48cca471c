"""
Pydantic schemas for data validation and agent structured outputs.

These schemas ensure:
1. Chat requests are validated
2. Job records recovered from agent text always carry their base fields
3. API responses are consistent
"""

from typing import Optional, List, Dict, Any
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# Enums
# ============================================================================

class UserRole(str, Enum):
    """Who is chatting."""

    SEEKER = "seeker"
    STUDENT = "student"
    GUEST = "guest"


class ContentType(str, Enum):
    """How a final message should be rendered."""

    JOBS = "jobs"
    LIST = "list"
    TEXT = "text"


# ============================================================================
# Job Data Schemas
# ============================================================================

DEFAULT_TITLE = "No title"
DEFAULT_COMPANY = "Unknown Company"
DEFAULT_LOCATION = "Location not specified"
DEFAULT_JOB_TYPE = "Full-time"


class JobRecord(BaseModel):
    """One job listing recovered from agent text.

    Empty base fields are replaced by fallbacks so a record never reaches
    the client without a title, company, location and description.
    """

    model_config = ConfigDict(populate_by_name=True)

    # Core info
    title: str = Field(default=DEFAULT_TITLE, alias="jobTitle")
    company: str = DEFAULT_COMPANY
    location: str = DEFAULT_LOCATION
    description: str = ""

    # Details
    salary: Optional[str] = None
    job_type: str = Field(default=DEFAULT_JOB_TYPE, alias="type")
    apply_url: str = Field(default="", alias="applyUrl")
    remote: bool = False

    # Enrichment
    sector: Optional[str] = None
    posted_at: Optional[str] = Field(default=None, alias="postedAt")
    source: Optional[str] = None
    experience_level: Optional[str] = Field(default=None, alias="experienceLevel")
    h1b_sponsorship: Optional[bool] = Field(default=None, alias="h1bSponsorship")

    @field_validator("title", "company", "location", "description", "job_type", "apply_url", mode="before")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @model_validator(mode="after")
    def fill_fallbacks(self):
        if not self.title:
            self.title = DEFAULT_TITLE
        if not self.company:
            self.company = DEFAULT_COMPANY
        if not self.location:
            self.location = DEFAULT_LOCATION
        if not self.job_type:
            self.job_type = DEFAULT_JOB_TYPE
        if not self.description:
            self.description = f"{self.title} position at {self.company}"
        if not self.remote:
            self.remote = any(
                "remote" in value.lower()
                for value in (self.location, self.description, self.title)
            )
        return self

    def dedupe_key(self, with_location: bool = False) -> tuple:
        if with_location:
            return (self.title, self.company, self.location)
        return (self.title, self.company)


class InstructionItem(BaseModel):
    """One entry of a plain instruction list."""

    text: str


# ============================================================================
# API Request/Response Schemas
# ============================================================================

class ChatRequest(BaseModel):
    """Chat message request. Validation of `message` happens in the route."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    guest_session_id: Optional[str] = Field(default=None, alias="guestSessionId")
    user_role: Optional[UserRole] = Field(default=None, alias="userRole")
    user_profile: Optional[Dict[str, Any]] = Field(default=None, alias="userProfile")
    current_filters: Optional[Dict[str, Any]] = Field(default=None, alias="currentFilters")

    @field_validator("user_id", "session_id", "guest_session_id", mode="before")
    @classmethod
    def ids_must_be_strings(cls, v):
        # Non-string identifiers are ignored rather than rejected
        return v if isinstance(v, str) and v.strip() else None

    @field_validator("user_role", mode="before")
    @classmethod
    def unknown_role_is_unset(cls, v):
        if isinstance(v, str) and v in {role.value for role in UserRole}:
            return v
        return None

    @field_validator("user_profile", "current_filters", mode="before")
    @classmethod
    def objects_only(cls, v):
        return v if isinstance(v, dict) else None


class ChatResponse(BaseModel):
    """Chat response returned to the widget."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    jobs: List[JobRecord] = Field(default_factory=list)
    filters: Dict[str, Any] = Field(default_factory=dict)
    session_id: str = Field(alias="sessionId")
    user_id: str = Field(alias="userId")
    user_role: str = Field(alias="userRole")
    timestamp: str
    response_type: str = Field(default="agent_response", alias="responseType")


class ErrorResponse(BaseModel):
    """Error payload for non-2xx responses."""

    error: str
    details: Optional[str] = None


class SaveChatRequest(BaseModel):
    """Chat turn to persist in the history Lambda."""

    session_id: Optional[str] = None
    user_id: Optional[str] = None
    user_input: Optional[str] = None
    agent_response: Optional[str] = None


class ParseRequest(BaseModel):
    """Raw agent output to run through the extraction core."""

    text: Any = None


class ParseResponse(BaseModel):
    """Result of parsing raw agent output."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    jobs: List[JobRecord] = Field(default_factory=list)
    filters: Dict[str, Any] = Field(default_factory=dict)
    content_type: ContentType = Field(alias="contentType")
