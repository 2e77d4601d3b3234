"""Resource enumerations and the listing filter object."""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Optional, Union

from edu_catalog.errors import ValidationError


class ResourceType(str, Enum):
    """Kinds of educational resource."""

    BOOK = "book"
    VIDEO = "video"
    ARTICLE = "article"
    COURSE = "course"
    GUIDE = "guide"
    REFERENCE = "reference"


class DifficultyLevel(str, Enum):
    """Resource difficulty levels."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class ResourceFilters:
    """Filter configuration for the published resource listing.

    A field left as None places no constraint on the listing. An empty
    ``search`` string is treated the same as None.

    Attributes:
        category_id: Exact match on the owning category
        type: Exact match on resource type
        difficulty_level: Exact match on difficulty
        search: Case-insensitive substring of title, description or author
        featured: Exact match on the featured flag
    """

    category_id: Optional[str] = None
    type: Optional[ResourceType] = None
    difficulty_level: Optional[DifficultyLevel] = None
    search: Optional[str] = None
    featured: Optional[bool] = None

    def __post_init__(self):
        try:
            if self.type is not None:
                object.__setattr__(self, "type", ResourceType(self.type))
            if self.difficulty_level is not None:
                object.__setattr__(
                    self, "difficulty_level", DifficultyLevel(self.difficulty_level)
                )
        except ValueError as e:
            raise ValidationError(str(e), code="invalid_filter") from e
        if self.search == "":
            object.__setattr__(self, "search", None)
        if self.featured is not None and not isinstance(self.featured, bool):
            raise ValidationError(
                f"featured must be a boolean, got {self.featured!r}",
                code="invalid_filter",
            )

    @classmethod
    def coerce(
        cls, filters: Union["ResourceFilters", dict[str, Any], None]
    ) -> "ResourceFilters":
        """Build filters from a mapping, rejecting unknown keys.

        Raises:
            ValidationError: on unknown keys or invalid enum values
        """
        if filters is None:
            return cls()
        if isinstance(filters, cls):
            return filters
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(filters) - known)
        if unknown:
            raise ValidationError(
                f"Unknown resource filter(s): {', '.join(unknown)}",
                code="invalid_filter",
            )
        return cls(**filters)

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))
