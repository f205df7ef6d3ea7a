from .display import DiagnosticDisplay

__all__ = [
    "DiagnosticDisplay",
]
