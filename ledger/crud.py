"""People and relationship CRUD, plus the graph snapshot loader."""
import logging
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session, selectinload

from .models import Group, Person, PersonGroup, Relationship, RelationshipType
from .schemas import (
    GraphGroupRef, GraphPerson, GraphRelatedPerson, GraphRelationship,
    GraphRelationshipType, GraphSubRelationship,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_owned_type(db: Session, user_id: str, type_id: str | None) -> RelationshipType | None:
    """Resolve a relationship type id for this user. Raises ValueError if unknown."""
    if not type_id:
        return None
    rt = db.get(RelationshipType, type_id)
    if rt is None or rt.user_id != user_id or rt.deleted_at is not None:
        raise ValueError("Relationship type not found")
    return rt


def _set_groups(db: Session, person: Person, user_id: str, group_ids):
    wanted = list(dict.fromkeys(group_ids or []))  # stable de-dupe
    groups = []
    for gid in wanted:
        g = db.get(Group, gid)
        if g is None or g.user_id != user_id or g.deleted_at is not None:
            raise ValueError("Group not found")
        groups.append(g)
    current = {pg.group_id: pg for pg in person.groups}
    person.groups = [current.get(g.id) or PersonGroup(group=g) for g in groups]


def live_group_ids(person: Person) -> list[str]:
    return [pg.group_id for pg in person.groups if pg.group.deleted_at is None]


# ── People ──

def create_person(db: Session, user_id: str, name: str, surname: str | None = None,
                  nickname: str | None = None, notes: str | None = None,
                  last_contact: date | None = None,
                  relationship_to_user_id: str | None = None, group_ids=()) -> Person:
    name = name.strip()
    if not name:
        raise ValueError("Name is required")
    get_owned_type(db, user_id, relationship_to_user_id)
    p = Person(user_id=user_id, name=name, surname=surname, nickname=nickname,
               notes=notes, last_contact=last_contact,
               relationship_to_user_id=relationship_to_user_id)
    _set_groups(db, p, user_id, group_ids)
    db.add(p); db.commit(); db.refresh(p)
    logger.info("Created person %s for user %s", p.id, user_id)
    return p


def list_people(db: Session, user_id: str, group_id: str | None = None) -> list[Person]:
    q = db.query(Person).filter(Person.user_id == user_id, Person.deleted_at.is_(None))
    if group_id:
        q = q.join(PersonGroup, PersonGroup.person_id == Person.id).filter(PersonGroup.group_id == group_id)
    return q.order_by(Person.name.asc(), Person.surname.asc()).all()


def get_person(db: Session, user_id: str, person_id: str) -> Person | None:
    p = db.get(Person, person_id)
    if p is None or p.user_id != user_id or p.deleted_at is not None:
        return None
    return p


def update_person(db: Session, user_id: str, person_id: str, name: str,
                  surname: str | None = None, nickname: str | None = None,
                  notes: str | None = None, last_contact: date | None = None,
                  relationship_to_user_id: str | None = None, group_ids=()) -> Person | None:
    p = get_person(db, user_id, person_id)
    if p is None:
        return None
    name = name.strip()
    if not name:
        raise ValueError("Name is required")
    get_owned_type(db, user_id, relationship_to_user_id)
    p.name = name
    p.surname = surname
    p.nickname = nickname
    p.notes = notes
    p.last_contact = last_contact
    p.relationship_to_user_id = relationship_to_user_id
    _set_groups(db, p, user_id, group_ids)
    db.commit(); db.refresh(p)
    logger.info("Updated person %s", p.id)
    return p


def delete_person(db: Session, user_id: str, person_id: str) -> bool:
    """Soft delete: the record stays but drops out of every query."""
    p = get_person(db, user_id, person_id)
    if p is None:
        return False
    p.deleted_at = _now()
    db.commit()
    logger.info("Soft-deleted person %s", person_id)
    return True


# ── Relationships ──

def _live_pair_records(db: Session, a: str, b: str) -> list[Relationship]:
    return db.query(Relationship).filter(
        Relationship.deleted_at.is_(None),
        ((Relationship.person_id == a) & (Relationship.related_person_id == b))
        | ((Relationship.person_id == b) & (Relationship.related_person_id == a)),
    ).all()


def _is_reverse_of(existing: Relationship, type_id: str | None) -> bool:
    if existing.relationship_type_id is None or type_id is None:
        return existing.relationship_type_id is None and type_id is None
    existing_type = existing.relationship_type
    return existing_type is not None and existing_type.inverse_id == type_id


def create_relationship(db: Session, user_id: str, person_id: str, related_person_id: str,
                        relationship_type_id: str | None = None,
                        notes: str | None = None) -> Relationship:
    """Record ``person -> related_person``.

    A pair may hold at most one record per direction, and a record in the
    opposite direction must carry the inverse of the existing type.
    """
    if person_id == related_person_id:
        raise ValueError("A person cannot be related to themselves")
    if get_person(db, user_id, person_id) is None or get_person(db, user_id, related_person_id) is None:
        raise ValueError("Person not found")
    get_owned_type(db, user_id, relationship_type_id)

    for existing in _live_pair_records(db, person_id, related_person_id):
        if existing.person_id == person_id:
            raise ValueError("Relationship already exists")
        if not _is_reverse_of(existing, relationship_type_id):
            raise ValueError("Conflicts with the existing relationship in the other direction")

    r = Relationship(person_id=person_id, related_person_id=related_person_id,
                     relationship_type_id=relationship_type_id, notes=notes)
    db.add(r); db.commit(); db.refresh(r)
    logger.info("Created relationship %s (%s -> %s)", r.id, person_id, related_person_id)
    return r


def get_relationship(db: Session, user_id: str, rel_id: str) -> Relationship | None:
    r = db.get(Relationship, rel_id)
    if r is None or r.deleted_at is not None or r.person.user_id != user_id:
        return None
    return r


def update_relationship(db: Session, user_id: str, rel_id: str,
                        relationship_type_id: str | None, notes: str | None) -> Relationship | None:
    r = get_relationship(db, user_id, rel_id)
    if r is None:
        return None
    get_owned_type(db, user_id, relationship_type_id)
    for other in _live_pair_records(db, r.person_id, r.related_person_id):
        if other.id != r.id and other.person_id != r.person_id:
            if not _is_reverse_of(other, relationship_type_id):
                raise ValueError("Conflicts with the existing relationship in the other direction")
    r.relationship_type_id = relationship_type_id
    r.notes = notes
    db.commit(); db.refresh(r)
    logger.info("Updated relationship %s", r.id)
    return r


def delete_relationship(db: Session, user_id: str, rel_id: str) -> bool:
    r = get_relationship(db, user_id, rel_id)
    if r is None:
        return False
    r.deleted_at = _now()
    db.commit()
    logger.info("Soft-deleted relationship %s", rel_id)
    return True


# ── Graph snapshot ──

def _type_snapshot(rt: RelationshipType | None, with_inverse: bool = True) -> GraphRelationshipType | None:
    if rt is None or rt.deleted_at is not None:
        return None
    inverse = _type_snapshot(rt.inverse, with_inverse=False) if with_inverse else None
    return GraphRelationshipType(label=rt.label, name=rt.name, color=rt.color, inverse=inverse)


def _groups_snapshot(person: Person) -> list[GraphGroupRef]:
    return [GraphGroupRef(name=pg.group.name, color=pg.group.color)
            for pg in person.groups if pg.group.deleted_at is None]


def _live_relationships(person: Person) -> list[Relationship]:
    return [r for r in person.relationships_from
            if r.deleted_at is None
            and r.related_person.deleted_at is None
            and r.related_person.user_id == person.user_id]


def load_graph_snapshot(db: Session, person_id: str, user_id: str) -> GraphPerson | None:
    """Load ``person_id`` plus two hops of live relationships for graph building.

    Returns None when the person is missing, deleted, or owned by someone else.
    """
    center = (
        db.query(Person)
        .options(
            selectinload(Person.groups).selectinload(PersonGroup.group),
            selectinload(Person.relationship_to_user),
            selectinload(Person.relationships_from).selectinload(Relationship.relationship_type)
            .selectinload(RelationshipType.inverse),
            selectinload(Person.relationships_from).selectinload(Relationship.related_person)
            .selectinload(Person.relationships_from),
        )
        .filter(Person.id == person_id, Person.user_id == user_id, Person.deleted_at.is_(None))
        .first()
    )
    if center is None:
        return None

    relationships = []
    for rel in _live_relationships(center):
        related = rel.related_person
        relationships.append(GraphRelationship(
            related_person_id=related.id,
            relationship_type=_type_snapshot(rel.relationship_type),
            related_person=GraphRelatedPerson(
                id=related.id, name=related.name, surname=related.surname,
                nickname=related.nickname, groups=_groups_snapshot(related),
                relationship_to_user=_type_snapshot(related.relationship_to_user, with_inverse=False),
                relationships_from=[
                    GraphSubRelationship(related_person_id=sub.related_person_id,
                                         relationship_type=_type_snapshot(sub.relationship_type))
                    for sub in _live_relationships(related)
                ],
            ),
        ))

    return GraphPerson(
        id=center.id, name=center.name, surname=center.surname, nickname=center.nickname,
        groups=_groups_snapshot(center),
        relationship_to_user=_type_snapshot(center.relationship_to_user, with_inverse=False),
        relationships_from=relationships,
    )
