from storygraph.modules.validation.schemas import Issue, IssueCounts, ValidationResult
from storygraph.modules.validation.validator import Validator, validate_story

__all__ = [
    "Issue",
    "IssueCounts",
    "ValidationResult",
    "Validator",
    "validate_story",
]
