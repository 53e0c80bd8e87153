"""
Traduction des ressources .resx.

Organisation du module :
- pipeline.py : Chaîne de recherche d'une entrée (valeur figée, glossaire,
  cache, modèle)
- resx_handler.py : Découverte, lecture et écriture des fichiers .resx
- translator.py : Orchestration fichiers × langues

Usage :
    >>> from resx_translator.translation import ResxTranslator
    >>> translator = ResxTranslator(paths, backend, settings)
    >>> translator.translate()
"""

from .pipeline import (
    LOOKUP_CHAIN,
    ResolvedBy,
    TranslationOutcome,
    TranslationPipeline,
)
from .resx_handler import (
    ResxEntry,
    find_resx_files,
    iter_entries,
    load_document,
    localized_path,
    save_document,
)
from .translator import ResxTranslator

__all__ = [
    # Pipeline
    "LOOKUP_CHAIN",
    "ResolvedBy",
    "TranslationOutcome",
    "TranslationPipeline",
    # Fichiers .resx
    "ResxEntry",
    "find_resx_files",
    "iter_entries",
    "load_document",
    "localized_path",
    "save_document",
    # Orchestration
    "ResxTranslator",
]
