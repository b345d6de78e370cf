from orm_doctor.suggestions.factory import SuggestionFactory
from orm_doctor.suggestions.templates import DEFAULT_TEMPLATES, SuggestionTemplate

__all__ = ["DEFAULT_TEMPLATES", "SuggestionFactory", "SuggestionTemplate"]
