from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

MAX_TARGET_COUNT = 50
MAX_BATCH_SIZE = 20


class CategoryId(str, Enum):
    LEARNING = "Learning"
    TOOLS = "Tools"
    PROJECT_REPOS = "Project Repos"
    VIDEOS = "Videos"
    OTHER = "Other"


ALL_CATEGORIES: Tuple[str, ...] = tuple(c.value for c in CategoryId)
FALLBACK_CATEGORY = CategoryId.OTHER


class LinkIdentity(BaseModel):
    """A link as known to the session. Two identities are the same link iff `url` matches exactly."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: Optional[str] = None


class CandidateLink(BaseModel):
    title: str = Field(..., description="Human readable title of the resource")
    url: str = Field(..., description="Absolute URL of the resource")
    description: str = Field(..., description="One or two sentences on what it offers")
    category: str = Field(
        ..., description="Exactly one of the valid categories given in the request"
    )


class AcceptedLink(BaseModel):
    title: str
    url: str
    description: str
    category: CategoryId


class SuggestionCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    keywords: Optional[str] = None
    preferred_categories: Tuple[CategoryId, ...] = ()
    target_count: int = Field(..., ge=0, le=MAX_TARGET_COUNT)
    known_links: Tuple[LinkIdentity, ...] = ()


class SuggestionBatchRequest(BaseModel):
    """What the accumulation loop asks of a suggestion source on each attempt."""

    keywords: Optional[str] = None
    preferred_categories: List[str] = Field(default_factory=list)
    valid_categories: List[str] = Field(default_factory=lambda: list(ALL_CATEGORIES))
    count: int = Field(..., ge=1, le=MAX_BATCH_SIZE)
    exclude_urls: List[LinkIdentity] = Field(default_factory=list)


class SuggestionBatch(BaseModel):
    suggested_links: List[CandidateLink]


StopReason = Literal[
    "target_reached",
    "source_exhausted",
    "attempt_budget_exhausted",
    "nothing_requested",
]


class AccumulationResult(BaseModel):
    links: List[AcceptedLink]
    attempts_used: int
    stop_reason: StopReason


class LinkItem(BaseModel):
    """An entry of the in-memory session collection."""

    id: str
    title: str
    description: str
    url: str
    category: CategoryId
    source: Literal["curated", "ai"]
    added_timestamp: int


OutcomeStatus = Literal["complete", "partial", "empty"]


class SuggestionOutcome(BaseModel):
    status: OutcomeStatus
    requested: int
    added: List[LinkItem]
    attempts_used: int
    message: str
