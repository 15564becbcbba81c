from .interfaces import ChatModel
from .registry import ModelRegistry, get_model_registry

__all__ = ["ChatModel", "ModelRegistry", "get_model_registry"]

