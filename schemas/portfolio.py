"""Portfolio document schema.

The user-editable aggregate behind every PRISMA portfolio site.
Stores accept and return `Portfolio`; the editor works on the
JSON-mode dict produced by `Portfolio.to_document()`.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class PortfolioStatus(str, Enum):
    """Portfolio lifecycle status."""

    DRAFT = "draft"
    PUBLISHED = "published"


class SkillLevel(str, Enum):
    """Self-assessed skill level."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class Experience(BaseModel):
    """A work experience entry."""

    id: str | None = None
    company: str = Field(..., min_length=1, max_length=200)
    position: str = Field(..., min_length=1, max_length=200)
    start_date: str = Field(..., description="ISO date or YYYY-MM")
    end_date: str | None = None
    current: bool = False
    description: str = Field("", max_length=2000)
    location: str | None = Field(None, max_length=100)
    highlights: list[str] = Field(default_factory=list, max_length=10)
    technologies: list[str] = Field(default_factory=list, max_length=20)


class Education(BaseModel):
    """An education entry."""

    id: str | None = None
    institution: str = Field(..., min_length=1, max_length=200)
    degree: str = Field("", max_length=200)
    field: str = Field("", max_length=200)
    start_date: str
    end_date: str | None = None
    current: bool = False
    description: str | None = Field(None, max_length=1000)
    achievements: list[str] = Field(default_factory=list, max_length=10)


class Project(BaseModel):
    """A showcased project."""

    id: str | None = None
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=2000)
    short_description: str | None = Field(None, max_length=500)
    role: str | None = Field(None, max_length=100)
    image_url: str | None = None
    project_url: str | None = None
    github_url: str | None = None
    technologies: list[str] = Field(default_factory=list, max_length=20)
    highlights: list[str] = Field(default_factory=list, max_length=10)
    featured: bool = False


class Skill(BaseModel):
    """A skill with optional level and category."""

    name: str = Field(..., min_length=1, max_length=50)
    level: SkillLevel | None = None
    category: str | None = Field(None, max_length=50)


class Certification(BaseModel):
    """A professional certification."""

    id: str | None = None
    name: str = Field(..., min_length=1, max_length=200)
    issuer: str = Field(..., min_length=1, max_length=200)
    issue_date: str
    expiry_date: str | None = None
    credential_id: str | None = None
    credential_url: str | None = None


class ContactInfo(BaseModel):
    """Public contact block."""

    email: str | None = None
    phone: str | None = None
    location: str | None = Field(None, max_length=100)
    availability: str | None = Field(None, max_length=100)


class SocialLinks(BaseModel):
    """Social profile links."""

    linkedin: str | None = None
    github: str | None = None
    twitter: str | None = None
    instagram: str | None = None
    youtube: str | None = None
    website: str | None = None
    dribbble: str | None = None
    behance: str | None = None


class Portfolio(BaseModel):
    """A complete portfolio document.

    Owned by exactly one user. Mutated only through an editor session
    and destroyed on explicit delete.
    """

    # Identity
    id: str = Field(..., description="Portfolio identifier")
    user_id: str = Field(..., description="Owning user")

    # Display fields
    name: str = Field(..., min_length=1, max_length=255)
    title: str | None = Field(None, max_length=255)
    bio: str | None = Field(None, max_length=5000)
    tagline: str | None = Field(None, max_length=500)
    avatar_url: str | None = None

    # Structured collections
    experience: list[Experience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)

    # Contact and social
    contact: ContactInfo = Field(default_factory=ContactInfo)
    social: SocialLinks = Field(default_factory=SocialLinks)

    # Presentation
    template: str = Field("developer", description="Template selector")
    customization: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form template customization",
    )

    # Lifecycle
    status: PortfolioStatus = Field(PortfolioStatus.DRAFT)
    subdomain: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    published_at: datetime | None = None

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-mode dict the editor operates on."""
        return self.model_dump(mode="json")


# Fields no update may change
READ_ONLY_FIELDS: frozenset[str] = frozenset({"id", "user_id", "created_at"})

# Fields only the store changes (publish, timestamps)
MANAGED_FIELDS: frozenset[str] = READ_ONLY_FIELDS | {"status", "updated_at", "published_at"}

EDITABLE_FIELDS: frozenset[str] = frozenset(Portfolio.model_fields) - MANAGED_FIELDS
