"""Explicit wiring of the ledger components.

One :class:`VerificationContext` is built at process start (or per Streamlit
session) and handed to whatever needs it; nothing in the core is a module
level singleton, so independent instances can coexist in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app_settings import AppSettings
from hashing import validate_algorithm
from merkle_tree import MerkleTree
from services.algorand_anchor import SimulatedAlgorandAnchor
from services.consensus import DEFAULT_NODES, ConsensusSimulator, DigestValidator
from services.content_analyzer import ContentAnalyzer, HeuristicContentAnalyzer, OpenAIContentAnalyzer
from services.entitlements import EntitlementSource, RevenueCatEntitlements, StaticEntitlements
from services.integrity_monitor import IntegrityMonitor
from services.memory_store import InMemoryMemoryStore, MemoryStore, SupabaseMemoryStore
from services.transactions import AtomicUpdateCoordinator


logger = logging.getLogger(__name__)


@dataclass
class VerificationContext:
    """Process-wide ledger state plus its external collaborators."""

    tree: MerkleTree = field(default_factory=MerkleTree)
    monitor: IntegrityMonitor = field(default_factory=IntegrityMonitor)
    consensus: ConsensusSimulator = field(default_factory=lambda: ConsensusSimulator(DEFAULT_NODES))
    coordinator: AtomicUpdateCoordinator = field(default_factory=AtomicUpdateCoordinator)
    store: MemoryStore = field(default_factory=InMemoryMemoryStore)
    analyzer: ContentAnalyzer = field(default_factory=HeuristicContentAnalyzer)
    entitlements: EntitlementSource = field(default_factory=lambda: StaticEntitlements(default_tier="pro"))
    anchor: SimulatedAlgorandAnchor = field(default_factory=SimulatedAlgorandAnchor)


def build_context(settings: AppSettings) -> VerificationContext:
    """Construct a context from runtime settings."""

    algorithm = validate_algorithm(settings.hash_algorithm)
    store: MemoryStore
    if settings.uses_remote_store:
        store = SupabaseMemoryStore(
            settings.supabase_url or "",
            settings.supabase_key or "",
            table=settings.supabase_table,
            timeout=settings.persistence_timeout,
        )
    else:
        logger.info("No Supabase credentials configured; memories are kept in process memory")
        store = InMemoryMemoryStore()

    analyzer: ContentAnalyzer
    if settings.openai_api_key:
        analyzer = OpenAIContentAnalyzer(settings.openai_api_key, model=settings.openai_model)
    else:
        analyzer = HeuristicContentAnalyzer()

    entitlements: EntitlementSource
    if settings.revenuecat_api_key:
        entitlements = RevenueCatEntitlements(settings.revenuecat_api_key)
    else:
        tier = settings.default_tier if settings.enable_advanced_verification else "free"
        entitlements = StaticEntitlements(default_tier=tier)

    return VerificationContext(
        tree=MerkleTree(algorithm=algorithm),
        monitor=IntegrityMonitor(algorithm=algorithm),
        consensus=ConsensusSimulator(
            settings.consensus_nodes,
            validator=DigestValidator(min_confidence=settings.consensus_min_confidence),
        ),
        coordinator=AtomicUpdateCoordinator(),
        store=store,
        analyzer=analyzer,
        entitlements=entitlements,
        anchor=SimulatedAlgorandAnchor(),
    )


__all__ = ["VerificationContext", "build_context"]
