"""ORM model package."""

from resource_billing.models.entities import (
    Leave,
    Project,
    ProjectResource,
    ProjectStatus,
    RateType,
    Resource,
    ResourceRole,
)

__all__ = [
    "Leave",
    "Project",
    "ProjectResource",
    "ProjectStatus",
    "RateType",
    "Resource",
    "ResourceRole",
]
