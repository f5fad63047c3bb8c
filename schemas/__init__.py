"""Schemas module for portfolio documents and editor state.

Provides Pydantic models for:
- Portfolio documents and their sections
- Editor session state and history entries
- Authenticated user sessions
"""

from .editor_state import EditorSessionState, HistoryEntry, UserSession
from .portfolio import (
    EDITABLE_FIELDS,
    MANAGED_FIELDS,
    READ_ONLY_FIELDS,
    Certification,
    ContactInfo,
    Education,
    Experience,
    Portfolio,
    PortfolioStatus,
    Project,
    Skill,
    SkillLevel,
    SocialLinks,
)

__all__ = [
    # Editor state
    "EditorSessionState",
    "HistoryEntry",
    "UserSession",
    # Portfolio
    "Portfolio",
    "PortfolioStatus",
    "Experience",
    "Education",
    "Project",
    "Skill",
    "SkillLevel",
    "Certification",
    "ContactInfo",
    "SocialLinks",
    "READ_ONLY_FIELDS",
    "MANAGED_FIELDS",
    "EDITABLE_FIELDS",
]
