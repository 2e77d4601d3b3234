"""Client-side value types for catalog entities."""

from edu_catalog.models.resource import ResourceType, DifficultyLevel, ResourceFilters
from edu_catalog.models.progress import validate_percentage, completion_timestamp

__all__ = [
    "ResourceType",
    "DifficultyLevel",
    "ResourceFilters",
    "validate_percentage",
    "completion_timestamp",
]
