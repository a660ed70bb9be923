from __future__ import annotations

from collections.abc import Callable

from projectmaster.common.logging import get_logger
from projectmaster.core.store.actions import Action, LoadData
from projectmaster.core.store.persistence import StateStorage, load_state, save_state
from projectmaster.core.store.reducer import reduce
from projectmaster.domain.state import PERSISTENT_FIELDS, AppState

logger = get_logger("store")

Listener = Callable[[AppState, Action], None]


class Store:
    """Holds the latest ``AppState`` and applies actions one at a time.

    ``dispatch`` runs the pure reducer against the current snapshot, swaps the
    snapshot in, writes the persistent subset to storage and then notifies
    listeners. Listeners may dispatch again; those actions see the state left
    by the previous dispatch.
    """

    def __init__(
        self,
        storage: StateStorage | None = None,
        *,
        storage_key: str | None = None,
        initial: AppState | None = None,
    ) -> None:
        self._state = initial or AppState()
        self._storage = storage
        self._storage_key = storage_key
        self._listeners: list[Listener] = []
        if storage is not None:
            self._hydrate()

    @property
    def state(self) -> AppState:
        return self._state

    def _hydrate(self) -> None:
        saved = load_state(self._storage, self._storage_key)
        if saved is None:
            return
        self._state = reduce(self._state, LoadData(payload=dict(saved)))
        logger.info(
            "Hydrated store from local storage (%d projects, %d tasks)",
            len(self._state.projects),
            len(self._state.tasks),
        )

    def dispatch(self, action: Action) -> AppState:
        previous = self._state
        self._state = reduce(previous, action)
        if self._state is previous:
            return self._state

        if self._storage is not None and any(
            getattr(previous, f) is not getattr(self._state, f) for f in PERSISTENT_FIELDS
        ):
            save_state(self._storage, self._state, self._storage_key)

        for listener in list(self._listeners):
            try:
                listener(self._state, action)
            except Exception:
                logger.exception("Store listener failed on %s", type(action).__name__)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
