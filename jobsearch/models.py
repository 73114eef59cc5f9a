"""
Normalized records shared by every adapter and the aggregator.

`Posting` is what adapters produce, `FilterSpec` is what the caller asks for,
and `SourceConfig` is one row of the static source table.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Optional

from jobsearch.errors import InvalidInput

SCORE_MIN = 0
SCORE_MAX = 10


def clamp_score(value: int) -> int:
    return max(SCORE_MIN, min(SCORE_MAX, int(value)))


class WorkModel(str, Enum):
    Remote = "Remote"
    Hybrid = "Hybrid"
    OnSite = "OnSite"
    NoPreference = "NoPreference"


class ExperienceLevel(str, Enum):
    Junior = "Junior"
    Mid = "Mid"
    Senior = "Senior"
    NoPreference = "NoPreference"


class SourceKind(str, Enum):
    JsonApi = "json_api"
    StaticHtml = "static_html"
    DynamicPage = "dynamic_page"

    @property
    def capability(self) -> str:
        """Capability the aggregator must provide: a browser or plain HTTP."""
        return "browser" if self is SourceKind.DynamicPage else "http"


@dataclass(frozen=True)
class Posting:
    """
    One normalized job posting.

    Immutable after construction. Both scores are clamped to [0, 10]; the
    scorer produces a copy with `relevance` set via `with_relevance()`.
    """

    title: str
    url: str
    source: str
    company: str = "See posting"
    location: str = "Not specified"
    salary: Optional[str] = None
    posted_date: date = field(default_factory=date.today)
    description: Optional[str] = None
    reputability: int = 0
    relevance: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "reputability", clamp_score(self.reputability))
        object.__setattr__(self, "relevance", clamp_score(self.relevance))

    @property
    def composite(self) -> int:
        return self.relevance + self.reputability

    def with_relevance(self, relevance: int) -> "Posting":
        return replace(self, relevance=clamp_score(relevance))

    def is_complete(self) -> bool:
        """True when the fields every returned posting must carry are present."""
        return bool(
            (self.title or "").strip()
            and (self.url or "").strip()
            and (self.source or "").strip()
        )


@dataclass(frozen=True)
class FilterSpec:
    """
    User-supplied constraints for a single search.

    The enum fields also accept their value or name as a string, so a spec
    built directly compares the same as one from `create()`.
    """

    query: str
    work_model: WorkModel = WorkModel.NoPreference
    city: Optional[str] = None
    state: Optional[str] = None
    experience_level: ExperienceLevel = ExperienceLevel.NoPreference

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "work_model", _coerce_enum(WorkModel, self.work_model, "work_model")
        )
        object.__setattr__(
            self,
            "experience_level",
            _coerce_enum(ExperienceLevel, self.experience_level, "experience_level"),
        )

    @classmethod
    def create(
        cls,
        query: str,
        work_model: WorkModel | str = WorkModel.NoPreference,
        city: Optional[str] = None,
        state: Optional[str] = None,
        experience_level: ExperienceLevel | str = ExperienceLevel.NoPreference,
    ) -> "FilterSpec":
        """
        Build a validated FilterSpec from loose caller input.

        Args:
            query: Free-text search terms; trimmed, must be non-empty.
            work_model: A WorkModel or its value/name (case-insensitive).
            city: Optional city; blank strings count as absent.
            state: Optional state; blank strings count as absent.
            experience_level: An ExperienceLevel or its value/name.

        Returns:
            A FilterSpec ready to hand to the aggregator.

        Raises:
            InvalidInput: If the query is empty or an enum value is unknown.
        """
        spec = cls(
            query=(query or "").strip(),
            work_model=work_model,
            city=(city or "").strip() or None,
            state=(state or "").strip() or None,
            experience_level=experience_level,
        )
        spec.validate()
        return spec

    def validate(self) -> None:
        if not (self.query or "").strip():
            raise InvalidInput("query must be a non-empty string")

    @property
    def has_location_filter(self) -> bool:
        return bool((self.city or "").strip() and (self.state or "").strip())

    @property
    def location_string(self) -> str:
        if self.has_location_filter:
            return f"{self.city.strip()}, {self.state.strip()}"
        return ""


def _coerce_enum(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    raw = str(value or "").strip().lower().replace("-", "").replace("_", "").replace(" ", "")
    for member in enum_cls:
        if raw in (member.value.lower(), member.name.lower()):
            return member
    # Friendly aliases used by the UI ("In-Person", "Mid-Level", ...)
    aliases = {
        "inperson": "OnSite",
        "onsite": "OnSite",
        "midlevel": "Mid",
        "any": "NoPreference",
        "": "NoPreference",
    }
    if raw in aliases and aliases[raw] in enum_cls.__members__:
        return enum_cls[aliases[raw]]
    raise InvalidInput(f"unknown {name}: {value!r}")


@dataclass(frozen=True)
class SourceConfig:
    """
    One row of the static source table.

    `cap=None` means "use the settings default" (the comment-thread cap when
    `comment_thread` is set). `upstream_query=False` marks sources that cannot
    filter by free text, so the client-side query-term rule applies.
    """

    source_id: str
    kind: SourceKind
    reputability: int
    cap: Optional[int] = None
    comment_thread: bool = False
    requires_credentials: bool = False
    start_delay: float = 0.0
    timeout: float = 30.0
    settle_seconds: float = 0.0
    scroll_pause_seconds: float = 0.0
    upstream_query: bool = True
    display_name: str = ""

    @property
    def capability(self) -> str:
        return self.kind.capability

    @property
    def name(self) -> str:
        """Label stamped on every posting as its `source`."""
        return self.display_name or self.source_id
