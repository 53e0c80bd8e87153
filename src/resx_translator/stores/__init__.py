"""
Stores de configuration rechargeables.

Ce package fournit:
- GlossaryStore: Glossaire obligatoire par langue
- NoTranslateStore: Termes à conserver tels quels
- EchoExclusionStore: Sorties identiques à la source tolérées
- KeyOverrideStore: Traductions figées par clé
- HotReloader: Rechargement à chaud avec anti-rebond
"""

from .glossary_store import (
    EchoExclusions,
    EchoExclusionStore,
    GlossaryStore,
    KeyOverrideStore,
    NoTranslateStore,
)
from .hot_reload import Debouncer, FileWatcher, HotReloader

__all__ = [
    "GlossaryStore",
    "KeyOverrideStore",
    "NoTranslateStore",
    "EchoExclusions",
    "EchoExclusionStore",
    "Debouncer",
    "FileWatcher",
    "HotReloader",
]
