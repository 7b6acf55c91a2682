"""Application setup for the typecode practice engine."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PySide6.QtCore import QObject

from typecode.core.analytics import AnalyticsStore
from typecode.core.config import Settings, load_settings
from typecode.core.session import SessionEngine, SessionRecord, wall_clock_ms
from typecode.core.snippets import Snippet, SnippetRepository
from typecode.core.storage import AnalyticsFileStore
from typecode.ui.live_metrics import LiveMetricsPoller


def configure_logging(level: str = "INFO") -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@dataclass
class Practice:
    """Everything a typing screen needs, wired together."""

    settings: Settings
    snippets: SnippetRepository
    analytics: AnalyticsStore
    storage: AnalyticsFileStore
    engine: SessionEngine

    def start(self, language: Optional[str] = None) -> Snippet:
        """Load a random snippet for ``language`` (or the default language)."""
        snippet = self.snippets.random(language or self.settings.default_language)
        self.engine.load(snippet)
        return snippet

    def live_poller(self, parent: Optional[QObject] = None) -> LiveMetricsPoller:
        """Poller refreshing the engine's live metrics at the configured rate."""
        return LiveMetricsPoller(self.engine, interval_ms=self.settings.live_refresh_ms, parent=parent)

    def export_history(self) -> str:
        return self.storage.export_json(self.analytics.data)

    def import_history(self, text: str) -> bool:
        """Replace history with an exported document, in memory and on disk."""
        data = self.storage.read_export(text)
        if data is None:
            return False
        self.analytics.replace(data)
        self.storage.save(self.analytics.data)
        return True

    def clear_history(self) -> None:
        self.analytics.clear()
        self.storage.clear()


def create_practice(
    settings: Optional[Settings] = None,
    snippets: Optional[SnippetRepository] = None,
    clock: Callable[[], float] = wall_clock_ms,
) -> Practice:
    """Build a practice context whose finished sessions are saved to disk."""
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    snippets = snippets or SnippetRepository()
    storage = AnalyticsFileStore(settings.analytics_path)
    analytics = AnalyticsStore(storage.load(), retention=settings.retention_limit)

    def record_and_save(session: SessionRecord) -> None:
        analytics.record(session)
        storage.save(analytics.data)

    engine = SessionEngine(sink=record_and_save, clock=clock)
    logging.info(
        "Practice ready: %d snippets, %d stored sessions",
        len(snippets.all()),
        len(analytics.sessions),
    )
    return Practice(
        settings=settings,
        snippets=snippets,
        analytics=analytics,
        storage=storage,
        engine=engine,
    )
