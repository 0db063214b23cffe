"""Account data export, optionally restricted to a set of groups."""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .models import Group, Person, PersonGroup, RelationshipType, User
from .names import format_display_name

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


def _type_ref(rt: RelationshipType | None) -> dict | None:
    if rt is None or rt.deleted_at is not None:
        return None
    return {"name": rt.name, "label": rt.label}


def export_user_data(db: Session, user: User, group_ids: list[str] | None = None) -> dict:
    """
    Build the export document for ``user``. With ``group_ids``:
      - only people in at least one of those groups are exported
      - only those groups are listed, on people and at top level
    Relationships always stay within the exported people.
    """
    group_filter = [g for g in (group_ids or []) if g]

    q = db.query(Person).filter(Person.user_id == user.id, Person.deleted_at.is_(None))
    if group_filter:
        q = q.filter(Person.groups.any(PersonGroup.group_id.in_(group_filter)))
    people = q.order_by(Person.name.asc()).all()
    person_ids = {p.id for p in people}

    if group_filter:
        exported_group_ids = set(group_filter)
    else:
        exported_group_ids = {pg.group_id for p in people for pg in p.groups}

    groups = (db.query(Group)
              .filter(Group.user_id == user.id, Group.deleted_at.is_(None),
                      Group.id.in_(exported_group_ids))
              .order_by(Group.name.asc())
              .all())
    live_group_ids = {g.id for g in groups}

    types = (db.query(RelationshipType)
             .filter(RelationshipType.user_id == user.id, RelationshipType.deleted_at.is_(None))
             .order_by(RelationshipType.label.asc())
             .all())

    people_out = []
    for p in people:
        relationships = []
        for rel in p.relationships_from:
            if rel.deleted_at is not None or rel.related_person_id not in person_ids:
                continue
            related = rel.related_person
            relationships.append({
                "related_person_id": rel.related_person_id,
                "related_person_name": format_display_name(related.name, related.nickname, related.surname),
                "relationship_type": _type_ref(rel.relationship_type),
                "notes": rel.notes,
            })
        people_out.append({
            "id": p.id,
            "name": p.name,
            "surname": p.surname,
            "nickname": p.nickname,
            "last_contact": p.last_contact.isoformat() if p.last_contact else None,
            "notes": p.notes,
            "relationship_to_user": _type_ref(p.relationship_to_user),
            "groups": [pg.group.name for pg in p.groups if pg.group_id in live_group_ids],
            "relationships": relationships,
        })

    logger.info("Exported %d people and %d groups for user %s", len(people_out), len(groups), user.id)
    return {
        "version": EXPORT_VERSION,
        "export_date": datetime.now(timezone.utc),
        "user": {
            "email": user.email,
            "name": user.name,
            "locale": user.locale,
            "account_created": user.created_at.isoformat() if user.created_at else None,
        },
        "groups": [{"id": g.id, "name": g.name, "description": g.description, "color": g.color}
                   for g in groups],
        "people": people_out,
        "relationship_types": [{"id": t.id, "name": t.name, "label": t.label, "color": t.color,
                                "inverse_id": t.inverse_id} for t in types],
    }
