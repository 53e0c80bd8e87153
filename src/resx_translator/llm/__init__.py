from .backend import OllamaBackend
from .template_renderers import PromptAssembler

__all__ = ["OllamaBackend", "PromptAssembler"]
