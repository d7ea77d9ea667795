"""Tools for OSCAL rule extensions, framework settings and assessment generation."""

__version__ = "0.1.0"

__all__ = [
    "components",
    "extensions",
    "models",
    "modelutils",
    "plans",
    "results",
    "rules",
    "settings",
    "transformers",
    "validation",
]