"""Group CRUD, membership management, and soft deletion."""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .models import Group, Person, PersonGroup

logger = logging.getLogger(__name__)


def create_group(db: Session, user_id: str, name: str, description: str | None = None,
                 color: str | None = None) -> Group:
    g = Group(user_id=user_id, name=name.strip(), description=description, color=color)
    db.add(g); db.commit(); db.refresh(g)
    logger.info("Created group %s for user %s", g.id, user_id)
    return g


def get_group(db: Session, user_id: str, group_id: str) -> Group | None:
    g = db.get(Group, group_id)
    if g is None or g.user_id != user_id or g.deleted_at is not None:
        return None
    return g


def list_groups(db: Session, user_id: str) -> list[Group]:
    return (db.query(Group)
            .filter(Group.user_id == user_id, Group.deleted_at.is_(None))
            .order_by(Group.name.asc())
            .all())


def update_group(db: Session, user_id: str, group_id: str, name: str,
                 description: str | None, color: str | None) -> Group | None:
    g = get_group(db, user_id, group_id)
    if g is None:
        return None
    g.name = name.strip()
    g.description = description
    g.color = color
    db.commit(); db.refresh(g)
    return g


def delete_group(db: Session, user_id: str, group_id: str, delete_people: bool = False) -> bool:
    """Soft delete a group. With ``delete_people`` its members are soft deleted too,
    restricted to people owned by the same user."""
    g = get_group(db, user_id, group_id)
    if g is None:
        return False
    now = datetime.now(timezone.utc)
    if delete_people:
        person_ids = [pg.person_id for pg in g.people]
        if person_ids:
            count = (db.query(Person)
                     .filter(Person.id.in_(person_ids), Person.user_id == user_id,
                             Person.deleted_at.is_(None))
                     .update({Person.deleted_at: now}, synchronize_session=False))
            logger.info("Soft-deleted %d people with group %s", count, group_id)
    g.deleted_at = now
    db.commit()
    logger.info("Soft-deleted group %s", group_id)
    return True


# ── Membership ──

def add_member(db: Session, user_id: str, group_id: str, person_id: str):
    """Add a person to a group. Idempotent."""
    g = get_group(db, user_id, group_id)
    p = db.get(Person, person_id)
    if g is None or p is None or p.user_id != user_id or p.deleted_at is not None:
        raise ValueError("Group or person not found")
    if db.get(PersonGroup, (person_id, group_id)) is not None:
        return  # already a member
    db.add(PersonGroup(person_id=person_id, group_id=group_id))
    db.commit()


def remove_member(db: Session, user_id: str, group_id: str, person_id: str):
    if get_group(db, user_id, group_id) is None:
        raise ValueError("Group or person not found")
    link = db.get(PersonGroup, (person_id, group_id))
    if link is not None:
        db.delete(link)
        db.commit()


def list_members(db: Session, user_id: str, group_id: str) -> list[Person]:
    return (db.query(Person)
            .join(PersonGroup, PersonGroup.person_id == Person.id)
            .filter(PersonGroup.group_id == group_id, Person.user_id == user_id,
                    Person.deleted_at.is_(None))
            .order_by(Person.name.asc())
            .all())
