"""
Main Orchestrator for Personal Budget Manager

This module ties together all the components:
1. Store (key-value persistence)
2. Auth (who is using the app)
3. Ledger (the budget engine, hydrated from the store)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No ledger is opened without an authenticated session
- Every ledger change is written back to the store (write-through)
- The engine itself never touches storage; it only exposes a hook

This is the "glue" the UI calls. Nothing in here holds budget logic.
"""

from pathlib import Path
from typing import Callable, Optional

from budget_manager.config import Settings, get_settings
from budget_manager.ledger import LedgerEngine
from budget_manager.log import get_logger
from budget_manager.models import SessionContext
from budget_manager.services.auth import AuthService
from budget_manager.services.storage import (
    InMemoryStore,
    KeyValueStore,
    LedgerSnapshotStore,
    StorageError,
    create_store,
)


class BudgetApp:
    """
    Application facade: sessions in, persisted ledgers out.

    Flow:
    1. register / login → SessionContext
    2. open_ledger(session) → LedgerEngine hydrated from the store
    3. every engine mutation → snapshot written back to the store
    4. logout → markers cleared, ledger detached
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._store = store
        self._auth = AuthService(store)
        self._snapshots = LedgerSnapshotStore(store, self._settings.ledger)
        self._detach: Optional[Callable[[], None]] = None
        self._logger = get_logger(__name__)

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def auth(self) -> AuthService:
        return self._auth

    @property
    def snapshots(self) -> LedgerSnapshotStore:
        return self._snapshots

    def open_ledger(self, session: SessionContext) -> LedgerEngine:
        """
        Open the persisted ledger for ``session``.

        A ledger with nothing persisted yet starts from the configured
        defaults, which are written out immediately.

        Raises:
            SessionError: If the session is not authenticated.
        """
        fresh = not self._snapshots.has_snapshot()
        snapshot = self._snapshots.load()
        engine = LedgerEngine.from_snapshot(session, snapshot, self._settings.ledger)

        self.close_ledger()
        self._detach = self._snapshots.attach(engine)

        if fresh:
            self._snapshots.save(engine.snapshot())
            self._logger.info("ledger_initialised", user=session.username)

        return engine

    def close_ledger(self) -> None:
        """Stop persisting the currently open ledger."""
        if self._detach is not None:
            self._detach()
            self._detach = None

    def resume(self) -> Optional[LedgerEngine]:
        """Reopen the ledger if the store says someone is logged in."""
        session = self._auth.current_session()
        if not session.authenticated:
            return None
        return self.open_ledger(session)

    def logout(self) -> SessionContext:
        self.close_ledger()
        return self._auth.logout()


def create_app_components(
    use_storage: bool = True,
    data_path: Optional[Path] = None,
    settings: Optional[Settings] = None,
) -> BudgetApp:
    """
    Factory function to create the application.

    Args:
        use_storage: Whether to use the configured persistent store.
                    Set to False for an in-memory app (tests, demos).
        data_path: Override for the JSON store location.
        settings: Settings to use instead of the environment.

    Returns:
        The wired BudgetApp

    Raises:
        StorageError: If the persistent store cannot be opened.
    """
    settings = settings or get_settings()
    logger = get_logger(__name__)

    if use_storage:
        store = create_store(settings.storage, path=data_path)
        try:
            store.connect()
        except StorageError as e:
            logger.error("store_open_failed", store=type(store).__name__, error=str(e))
            raise
    else:
        store = InMemoryStore()

    logger.info(
        "app_components_created",
        store=type(store).__name__,
        environment=settings.app.app_environment,
    )
    return BudgetApp(store, settings)
