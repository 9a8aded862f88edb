"""
SQLAlchemy models for cached layout categories and layouts.
Rows are owned by the reconciler; everything else only reads them.
"""
from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from decoder import CatalogCategory, CatalogLayout


class Base(DeclarativeBase):
    pass


layout_categories = Table(
    "page_template_layout_categories",
    Base.metadata,
    Column("layout_id", Integer, ForeignKey("page_template_layouts.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("page_template_categories.id", ondelete="CASCADE"), primary_key=True),
)


class LayoutCategory(Base):
    __tablename__ = "page_template_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    emoji: Mapped[str | None] = mapped_column(String(32), nullable=True)

    layouts: Mapped[list["Layout"]] = relationship(
        "Layout", secondary=layout_categories, back_populates="categories", order_by="Layout.title"
    )

    @classmethod
    def from_catalog(cls, category: CatalogCategory) -> "LayoutCategory":
        instance = cls(slug=category.slug)
        instance.update_from(category)
        return instance

    def update_from(self, category: CatalogCategory) -> None:
        self.title = category.title
        self.description = category.description
        self.emoji = category.emoji

    def __repr__(self) -> str:
        return f"LayoutCategory(slug={self.slug!r}, title={self.title!r})"


class Layout(Base):
    __tablename__ = "page_template_layouts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    preview: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    categories: Mapped[set["LayoutCategory"]] = relationship(
        "LayoutCategory", secondary=layout_categories, back_populates="layouts", collection_class=set
    )

    @classmethod
    def from_catalog(cls, layout: CatalogLayout) -> "Layout":
        instance = cls(slug=layout.slug)
        instance.update_from(layout)
        return instance

    def update_from(self, layout: CatalogLayout) -> None:
        self.title = layout.title
        self.preview = layout.preview
        self.content = layout.content

    @property
    def category_slugs(self) -> set[str]:
        return {category.slug for category in self.categories}

    def __repr__(self) -> str:
        return f"Layout(slug={self.slug!r}, title={self.title!r})"
