"""Feedback board configuration.

Controls paging, input limits, search suggestions, and the trending
sort. All settings can be overridden via ``FEEDBACK_*`` environment
variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeedbackConfig(BaseSettings):
    """Configuration for the feedback board engine."""

    model_config = SettingsConfigDict(
        env_prefix="FEEDBACK_",
        case_sensitive=False,
        extra="ignore",
    )

    page_size: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Items requested per page when fetching a board",
    )
    max_pages: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Upper bound on pages followed when loading a whole board",
    )
    max_title_length: int = Field(
        default=200,
        ge=1,
        le=2000,
        description="Maximum length for feedback titles",
    )
    max_comment_length: int = Field(
        default=2000,
        ge=0,
        le=10000,
        description="Maximum length for comments (0 = unlimited)",
    )

    # Recent searches
    recent_search_key: str = Field(
        default="kb-recent-searches",
        description="Key-value store key holding recent searches",
    )
    recent_search_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of recent searches remembered",
    )
    suggestion_limit: int = Field(
        default=8,
        ge=1,
        le=50,
        description="Maximum suggestions shown under the search box",
    )

    # Trending sort: votes plus a flat boost for recently created items
    trending_window_days: int = Field(
        default=7,
        ge=1,
        le=365,
        description="Items created within this many days get the trending boost",
    )
    trending_boost: int = Field(
        default=10,
        ge=0,
        description="Votes-equivalent boost for recently created items",
    )
