"""Reconcile a fetched catalog into the local store."""

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from decoder import Catalog, CatalogCategory, CatalogLayout
from errors import PersistenceError
from logging_setup import get_logger
from models import Layout, LayoutCategory
from store import Store


@dataclass
class ReconcileStats:
    categories_created: int = 0
    categories_updated: int = 0
    categories_deleted: int = 0
    layouts_created: int = 0
    layouts_updated: int = 0
    layouts_deleted: int = 0


def reconcile(store: Store, catalog: Catalog) -> ReconcileStats:
    """Replace the stored categories and layouts with those in ``catalog``.

    Entries are matched by slug: matches are updated in place, new slugs are
    inserted and anything not in the catalog is deleted. Every layout's
    categories are reset to the stored categories it names. All of it is
    committed as one transaction, or not at all.

    Raises:
        PersistenceError: if any step fails; the store is left untouched.
    """
    logger = get_logger()
    stats = ReconcileStats()

    try:
        with store.write_session() as session:
            reconcile_categories(session, catalog.categories, stats)
            # Layout associations below query the categories just written
            session.flush()
            reconcile_layouts(session, catalog.layouts, stats)
    except Exception as e:
        logger.error("Failed to persist layouts: %s", e)
        raise PersistenceError(f"Failed to persist layouts: {e}") from e

    logger.info(
        "Categories: %d created, %d updated, %d deleted",
        stats.categories_created,
        stats.categories_updated,
        stats.categories_deleted,
    )
    logger.info(
        "Layouts: %d created, %d updated, %d deleted",
        stats.layouts_created,
        stats.layouts_updated,
        stats.layouts_deleted,
    )
    return stats


def find_category(session: Session, slug: str) -> LayoutCategory | None:
    stmt = select(LayoutCategory).where(LayoutCategory.slug == slug)
    return session.execute(stmt).scalars().first()


def find_layout(session: Session, slug: str) -> Layout | None:
    stmt = select(Layout).where(Layout.slug == slug)
    return session.execute(stmt).scalars().first()


def reconcile_categories(
    session: Session,
    categories: Iterable[CatalogCategory],
    stats: ReconcileStats,
) -> None:
    logger = get_logger()
    to_delete = set(session.execute(select(LayoutCategory)).scalars().all())

    for category in categories:
        local = find_category(session, category.slug)
        if local is not None:
            to_delete.discard(local)
            local.update_from(category)
            stats.categories_updated += 1
            logger.debug("Updated category %s", category.slug)
        else:
            session.add(LayoutCategory.from_catalog(category))
            stats.categories_created += 1
            logger.debug("Created category %s", category.slug)

    for stale in to_delete:
        logger.debug("Deleting category %s", stale.slug)
        session.delete(stale)
    stats.categories_deleted = len(to_delete)


def reconcile_layouts(
    session: Session,
    layouts: Iterable[CatalogLayout],
    stats: ReconcileStats,
) -> None:
    logger = get_logger()
    to_delete = set(session.execute(select(Layout)).scalars().all())

    for layout in layouts:
        local = find_layout(session, layout.slug)
        if local is not None:
            to_delete.discard(local)
            local.update_from(layout)
            stats.layouts_updated += 1
            logger.debug("Updated layout %s", layout.slug)
        else:
            local = Layout.from_catalog(layout)
            session.add(local)
            stats.layouts_created += 1
            logger.debug("Created layout %s", layout.slug)
        associate_categories(session, local, layout.category_slugs)

    for stale in to_delete:
        logger.debug("Deleting layout %s", stale.slug)
        session.delete(stale)
    stats.layouts_deleted = len(to_delete)


def associate_categories(session: Session, layout: Layout, slugs: Iterable[str]) -> None:
    """Set ``layout.categories`` to exactly the stored categories named by ``slugs``.

    Slugs with no stored category are dropped.
    """
    wanted = set(slugs)
    if wanted:
        stmt = select(LayoutCategory).where(LayoutCategory.slug.in_(wanted))
        found = set(session.execute(stmt).scalars().all())
    else:
        found = set()

    missing = wanted - {category.slug for category in found}
    if missing:
        get_logger().debug(
            "Layout %s references unknown categories: %s", layout.slug, ", ".join(sorted(missing))
        )
    layout.categories = found
