import uuid
from datetime import date, datetime, timezone
from sqlalchemy import String, Text, ForeignKey, Date, DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "user_account"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    locale: Mapped[str] = mapped_column(String(10), nullable=False, default="en")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class RelationshipType(Base):
    __tablename__ = "relationship_type"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("user_account.id"), nullable=False)
    # canonical key (PARENT, SIBLING, ...) only used to match default labels
    name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    inverse_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("relationship_type.id"), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    inverse = relationship(
        "RelationshipType", remote_side=[id], foreign_keys=[inverse_id], post_update=True)


class Person(Base):
    __tablename__ = "person"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("user_account.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    surname: Mapped[str | None] = mapped_column(String(200), nullable=True)
    nickname: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_contact: Mapped[date | None] = mapped_column(Date, nullable=True)
    relationship_to_user_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("relationship_type.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    relationship_to_user = relationship("RelationshipType", foreign_keys=[relationship_to_user_id])
    groups = relationship("PersonGroup", back_populates="person", cascade="all, delete-orphan")
    relationships_from = relationship(
        "Relationship", foreign_keys="Relationship.person_id", back_populates="person")


class Group(Base):
    __tablename__ = "person_group_def"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("user_account.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    people = relationship("PersonGroup", back_populates="group", cascade="all, delete-orphan")


class PersonGroup(Base):
    __tablename__ = "person_group"
    person_id: Mapped[str] = mapped_column(String(36), ForeignKey("person.id"), primary_key=True)
    group_id: Mapped[str] = mapped_column(String(36), ForeignKey("person_group_def.id"), primary_key=True)

    person = relationship("Person", back_populates="groups")
    group = relationship("Group", back_populates="people")


class Relationship(Base):
    __tablename__ = "relationship"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    person_id: Mapped[str] = mapped_column(String(36), ForeignKey("person.id"), nullable=False)
    related_person_id: Mapped[str] = mapped_column(String(36), ForeignKey("person.id"), nullable=False)
    relationship_type_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("relationship_type.id"), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    person = relationship("Person", foreign_keys=[person_id], back_populates="relationships_from")
    related_person = relationship("Person", foreign_keys=[related_person_id])
    relationship_type = relationship("RelationshipType", foreign_keys=[relationship_type_id])
