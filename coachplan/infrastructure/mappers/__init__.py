"""Infrastructure mappers bridging persistence and domain layers."""

from .plan_mapper import PlanMappingError, PlanTreeMapper

__all__ = [
    "PlanTreeMapper",
    "PlanMappingError",
]
