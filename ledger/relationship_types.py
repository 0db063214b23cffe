"""Relationship-type catalogue: default labels, localization keys and label resolution."""
import logging
from types import MappingProxyType
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .models import RelationshipType

logger = logging.getLogger(__name__)

DEFAULT_RELATIONSHIP_TYPE_LABELS = MappingProxyType({
    "PARENT": "Parent",
    "CHILD": "Child",
    "GRANDPARENT": "Grandparent",
    "GRANDCHILD": "Grandchild",
    "AUNT_UNCLE": "Aunt/Uncle",
    "NIECE_NEPHEW": "Niece/Nephew",
    "COUSIN": "Cousin",
    "STEP_PARENT": "Step-Parent",
    "STEP_CHILD": "Step-Child",
    "PARENT_IN_LAW": "Parent-in-Law",
    "CHILD_IN_LAW": "Child-in-Law",
    "SIBLING_IN_LAW": "Sibling-in-Law",
    "SIBLING": "Sibling",
    "SPOUSE": "Spouse",
    "PARTNER": "Partner",
    "FRIEND": "Friend",
    "COLLEAGUE": "Colleague",
    "ACQUAINTANCE": "Acquaintance",
    "OTHER": "Other",
})

DEFAULT_RELATIONSHIP_TYPE_KEYS = MappingProxyType({
    "PARENT": "parent",
    "CHILD": "child",
    "GRANDPARENT": "grandparent",
    "GRANDCHILD": "grandchild",
    "AUNT_UNCLE": "auntUncle",
    "NIECE_NEPHEW": "nieceNephew",
    "COUSIN": "cousin",
    "STEP_PARENT": "stepParent",
    "STEP_CHILD": "stepChild",
    "PARENT_IN_LAW": "parentInLaw",
    "CHILD_IN_LAW": "childInLaw",
    "SIBLING_IN_LAW": "siblingInLaw",
    "SIBLING": "sibling",
    "SPOUSE": "spouse",
    "PARTNER": "partner",
    "FRIEND": "friend",
    "COLLEAGUE": "colleague",
    "ACQUAINTANCE": "acquaintance",
    "OTHER": "other",
})

# (name, color, inverse name); an inverse equal to the name marks a symmetric type
PRELOADED_RELATIONSHIP_TYPES = (
    ("PARENT", "#F59E0B", "CHILD"),
    ("CHILD", "#F59E0B", "PARENT"),
    ("GRANDPARENT", "#F97316", "GRANDCHILD"),
    ("GRANDCHILD", "#FB923C", "GRANDPARENT"),
    ("AUNT_UNCLE", "#A855F7", "NIECE_NEPHEW"),
    ("NIECE_NEPHEW", "#D946EF", "AUNT_UNCLE"),
    ("COUSIN", "#0EA5E9", "COUSIN"),
    ("STEP_PARENT", "#EF4444", "STEP_CHILD"),
    ("STEP_CHILD", "#F43F5E", "STEP_PARENT"),
    ("PARENT_IN_LAW", "#22C55E", "CHILD_IN_LAW"),
    ("CHILD_IN_LAW", "#16A34A", "PARENT_IN_LAW"),
    ("SIBLING_IN_LAW", "#06B6D4", "SIBLING_IN_LAW"),
    ("SIBLING", "#8B5CF6", "SIBLING"),
    ("SPOUSE", "#EC4899", "SPOUSE"),
    ("PARTNER", "#EC4899", "PARTNER"),
    ("FRIEND", "#3B82F6", "FRIEND"),
    ("COLLEAGUE", "#10B981", "COLLEAGUE"),
    ("ACQUAINTANCE", "#14B8A6", "ACQUAINTANCE"),
    ("OTHER", "#6B7280", "OTHER"),
)

Translate = Callable[[str], str]


def resolve_label(rel_type, translate: Optional[Translate] = None) -> str:
    """Return the label a relationship type should display.

    Custom types and user-edited labels come back verbatim. Only a
    built-in type whose label still matches its default text is passed
    through ``translate`` (when one is given).
    """
    name = getattr(rel_type, "name", None)
    if not name:
        return rel_type.label

    normalized = name.upper()
    default_label = DEFAULT_RELATIONSHIP_TYPE_LABELS.get(normalized)
    if default_label is None:
        return rel_type.label

    if rel_type.label != default_label:
        return rel_type.label

    if translate is None:
        return rel_type.label

    return translate(DEFAULT_RELATIONSHIP_TYPE_KEYS[normalized])


def create_preloaded_relationship_types(db: Session, user_id: str) -> list[RelationshipType]:
    """Give a new account its own editable copy of the default catalogue."""
    by_name: dict[str, RelationshipType] = {}

    # First pass: create all types so inverse pointers have targets
    for name, color, _inverse in PRELOADED_RELATIONSHIP_TYPES:
        rt = RelationshipType(
            user_id=user_id, name=name,
            label=DEFAULT_RELATIONSHIP_TYPE_LABELS[name], color=color,
        )
        db.add(rt)
        by_name[name] = rt
    db.flush()

    # Second pass: link inverses (symmetric types point at themselves)
    for name, _color, inverse in PRELOADED_RELATIONSHIP_TYPES:
        by_name[name].inverse_id = by_name[inverse].id

    db.commit()
    logger.info("Created %d preloaded relationship types for user %s", len(by_name), user_id)
    return list(by_name.values())
