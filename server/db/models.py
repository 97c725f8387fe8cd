"""SQLAlchemy models for the passage catalog."""

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class VersionRow(Base):
    __tablename__ = "versions"

    code: Mapped[str] = mapped_column(String(16), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    language: Mapped[str] = mapped_column(String(32), default="")


class ContainerRow(Base):
    """One book of one version."""

    __tablename__ = "containers"
    __table_args__ = (UniqueConstraint("version_code", "code", name="uq_containers_version_code"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    version_code: Mapped[str] = mapped_column(String(16), ForeignKey("versions.code", ondelete="CASCADE"), nullable=False)
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    order: Mapped[int] = mapped_column("sort_order", Integer, nullable=False)
    sub_units: Mapped[int] = mapped_column(Integer, default=0)


class PassageRow(Base):
    __tablename__ = "passages"

    passage_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    version_code: Mapped[str] = mapped_column(String(16), ForeignKey("versions.code", ondelete="CASCADE"), index=True, nullable=False)
    container_code: Mapped[str] = mapped_column(String(16), index=True, nullable=False)
    container_name: Mapped[str] = mapped_column(String(255), nullable=False)
    container_order: Mapped[int] = mapped_column(Integer, nullable=False)
    sub_unit: Mapped[int] = mapped_column(Integer, nullable=False)
    unit: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
