"""Live, sorted view over the cached layout categories."""

import threading
from collections.abc import Callable, Iterator

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from logging_setup import get_logger
from models import Layout, LayoutCategory
from store import Store


CategoriesCallback = Callable[[list[LayoutCategory]], None]


def load_categories(store: Store) -> list[LayoutCategory]:
    """All stored categories sorted by title, with their layouts loaded."""
    stmt = (
        select(LayoutCategory)
        .options(selectinload(LayoutCategory.layouts).selectinload(Layout.categories))
        .order_by(LayoutCategory.title.asc(), LayoutCategory.slug.asc())
    )
    with store.read_session() as session:
        return list(session.execute(stmt).scalars().all())


class CategoryView:
    """Categories as last read from the store, refreshed after every commit.

    Loading is best effort: a failed read is logged and leaves the view
    empty rather than raising.
    """

    def __init__(self, store: Store) -> None:
        self._store = store
        self._categories: list[LayoutCategory] = []
        self._subscribers: list[CategoriesCallback] = []
        self._lock = threading.Lock()
        self._attached = False

    @property
    def categories(self) -> list[LayoutCategory]:
        with self._lock:
            return list(self._categories)

    def __len__(self) -> int:
        return len(self.categories)

    def __iter__(self) -> Iterator[LayoutCategory]:
        return iter(self.categories)

    def load(self) -> list[LayoutCategory]:
        try:
            categories = load_categories(self._store)
        except Exception as e:
            get_logger().error("Failed to fetch layout categories: %s", e)
            categories = []

        with self._lock:
            self._categories = categories
        return list(categories)

    def attach(self) -> None:
        """Start following store commits."""
        if not self._attached:
            self._store.add_commit_listener(self._on_commit)
            self._attached = True

    def close(self) -> None:
        if self._attached:
            self._store.remove_commit_listener(self._on_commit)
            self._attached = False
        with self._lock:
            self._subscribers.clear()

    def subscribe(self, callback: CategoriesCallback) -> Callable[[], None]:
        """Call ``callback`` with the new categories after each commit.

        Returns a function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _on_commit(self) -> None:
        categories = self.load()
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(categories)
