# imagemeta/models/__init__.py

from .model_usage import ModelUsage

__all__ = [
    "ModelUsage",
]
