"""Relationship-type CRUD and inverse management.

The graph trusts that ``type.inverse.inverse`` is ``type``; this module
is where that gets enforced when users edit their catalogue.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .models import RelationshipType
from .relationship_types import Translate, resolve_label

logger = logging.getLogger(__name__)

# update_type: leave the current inverse pairing untouched
KEEP = object()


def list_types(db: Session, user_id: str) -> list[RelationshipType]:
    return (db.query(RelationshipType)
            .filter(RelationshipType.user_id == user_id, RelationshipType.deleted_at.is_(None))
            .order_by(RelationshipType.label.asc())
            .all())


def get_type(db: Session, user_id: str, type_id: str) -> RelationshipType | None:
    rt = db.get(RelationshipType, type_id)
    if rt is None or rt.user_id != user_id or rt.deleted_at is not None:
        return None
    return rt


def _unlink(rt: RelationshipType):
    """Drop rt's inverse pointer and the back pointer that pairs with it."""
    old = rt.inverse
    if old is not None and old is not rt and old.inverse_id == rt.id:
        old.inverse_id = None
    rt.inverse_id = None


def set_inverse(db: Session, rt: RelationshipType, other: RelationshipType):
    """Pair rt with other in both directions (other may be rt itself).

    Raises ValueError when other is already paired with a third type.
    """
    if other.user_id != rt.user_id or other.deleted_at is not None:
        raise ValueError("Inverse relationship type not found")
    if other is not rt and other.inverse_id not in (None, rt.id, other.id):
        raise ValueError("Inverse type is already paired with another type")
    if rt.inverse_id != other.id:
        _unlink(rt)
    if other is not rt and other.inverse_id == other.id:
        # a symmetric type stops being its own inverse once paired
        other.inverse_id = None
    rt.inverse_id = other.id
    other.inverse_id = rt.id
    db.flush()


def _apply_inverse(db: Session, user_id: str, rt: RelationshipType,
                   inverse_id, symmetric: bool):
    if symmetric and inverse_id not in (None, KEEP, rt.id):
        raise ValueError("A symmetric type cannot have a separate inverse")
    if symmetric:
        set_inverse(db, rt, rt)
    elif inverse_id is KEEP:
        return
    elif inverse_id:
        other = get_type(db, user_id, inverse_id)
        if other is None:
            raise ValueError("Inverse relationship type not found")
        set_inverse(db, rt, other)
    else:
        _unlink(rt)


def create_type(db: Session, user_id: str, label: str, color: str | None = None,
                inverse_id: str | None = None, symmetric: bool = False) -> RelationshipType:
    """Create a custom type (no canonical name, so its label is never translated)."""
    rt = RelationshipType(user_id=user_id, name=None, label=label.strip(), color=color)
    db.add(rt)
    db.flush()
    try:
        _apply_inverse(db, user_id, rt, inverse_id, symmetric)
    except ValueError:
        db.rollback()
        raise
    db.commit(); db.refresh(rt)
    logger.info("Created relationship type %s for user %s", rt.id, user_id)
    return rt


def update_type(db: Session, user_id: str, type_id: str, label: str, color: str | None = None,
                inverse_id=KEEP, symmetric: bool = False) -> RelationshipType | None:
    """Replace label and color. The inverse changes only when ``inverse_id``
    is given (None unlinks) or ``symmetric`` is set. Editing the label of a
    built-in type keeps its canonical name, so it stops being translated."""
    rt = get_type(db, user_id, type_id)
    if rt is None:
        return None
    rt.label = label.strip()
    rt.color = color
    try:
        _apply_inverse(db, user_id, rt, inverse_id, symmetric)
    except ValueError:
        db.rollback()
        raise
    db.commit(); db.refresh(rt)
    logger.info("Updated relationship type %s", rt.id)
    return rt


def delete_type(db: Session, user_id: str, type_id: str) -> bool:
    """Soft delete a type and clear every inverse pointer that referenced it."""
    rt = get_type(db, user_id, type_id)
    if rt is None:
        return False
    (db.query(RelationshipType)
     .filter(RelationshipType.inverse_id == rt.id, RelationshipType.id != rt.id)
     .update({RelationshipType.inverse_id: None}, synchronize_session="fetch"))
    rt.inverse_id = None
    rt.deleted_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("Soft-deleted relationship type %s", type_id)
    return True


def find_asymmetric_inverses(db: Session, user_id: str) -> list[str]:
    """Ids of live types whose inverse does not point back at them."""
    broken = []
    for rt in list_types(db, user_id):
        inv = rt.inverse
        if inv is None:
            continue
        if inv.deleted_at is not None or inv.inverse_id != rt.id:
            broken.append(rt.id)
    if broken:
        logger.warning("User %s has %d relationship types with asymmetric inverses",
                       user_id, len(broken))
    return broken


def type_out(rt: RelationshipType, translate: Translate | None = None) -> dict:
    return {
        "id": rt.id,
        "name": rt.name,
        "label": rt.label,
        "display_label": resolve_label(rt, translate),
        "color": rt.color,
        "inverse_id": rt.inverse_id,
    }
