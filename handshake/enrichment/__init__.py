from .renderer import ClaudeRenderer, StaticRenderer, Suggestion, SuggestionService

__all__ = ["ClaudeRenderer", "StaticRenderer", "Suggestion", "SuggestionService"]
