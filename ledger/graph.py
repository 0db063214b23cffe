"""Ego-network graph for one person: node discovery and edge deduplication.

Relationship records are directed for storage, the graph is undirected.
Every pair of people is keyed by id order so it produces one edge no
matter which side the record was stored from; when the record has to be
flipped to fit that order, the label comes from the type's inverse.
"""
from __future__ import annotations

import logging
from typing import Optional

from .names import format_graph_name
from .relationship_types import Translate, resolve_label

logger = logging.getLogger(__name__)

PERSON_EDGE_COLOR = "#999999"
USER_EDGE_COLOR = "#9CA3AF"
GROUP_COLOR = "#3B82F6"
UNKNOWN_LABEL = "Unknown"
USER_NODE_LABEL = "You"


def user_node_id(user_id: str) -> str:
    return f"user-{user_id}"


def edge_key(source: str, target: str) -> str:
    return f"{source}-{target}"


def canonical_edge(origin_id: str, target_id: str, rel_type,
                   translate: Optional[Translate] = None,
                   default_color: str = PERSON_EDGE_COLOR) -> dict:
    """Orient one directed record ``origin -> target`` into canonical form.

    The smaller id becomes the source. If that reverses the record, the
    inverse type supplies label and color; a reversed record whose type
    has no inverse reads as "Unknown".
    """
    swapped = origin_id > target_id
    source, target = (target_id, origin_id) if swapped else (origin_id, target_id)

    if rel_type is None:
        label, color = UNKNOWN_LABEL, None
    elif swapped:
        inverse = rel_type.inverse
        if inverse is not None:
            label, color = resolve_label(inverse, translate), inverse.color
        else:
            label, color = UNKNOWN_LABEL, rel_type.color
    else:
        label, color = resolve_label(rel_type, translate), rel_type.color

    return {"source": source, "target": target, "label": label, "color": color or default_color}


def _node(person, is_center: bool = False) -> dict:
    groups = person.groups or []
    return {
        "id": person.id,
        "label": format_graph_name(person),
        "groups": [g.name for g in groups],
        "colors": [g.color or GROUP_COLOR for g in groups],
        "is_center": is_center,
    }


def _user_edge(person_id: str, user_id: str, rel_type,
               translate: Optional[Translate]) -> dict:
    # Already oriented person -> user, no canonicalization
    return {
        "source": person_id,
        "target": user_node_id(user_id),
        "label": resolve_label(rel_type, translate),
        "color": rel_type.color or USER_EDGE_COLOR,
    }


class _EdgeSet:
    """Insertion-ordered edges, at most one per key; first seen wins."""

    def __init__(self):
        self.edges: list[dict] = []
        self._keys: set[str] = set()

    def add(self, edge: dict) -> bool:
        key = edge_key(edge["source"], edge["target"])
        if key in self._keys:
            return False
        self._keys.add(key)
        self.edges.append(edge)
        return True


def build_graph(center, viewing_user_id: str,
                translate: Optional[Translate] = None) -> dict:
    """Build ``{"nodes": [...], "edges": [...]}`` for ``center``'s network.

    ``center`` is a live snapshot (see ``schemas.GraphPerson``); second-hop
    relationships only connect people already in the graph and never add
    nodes.
    """
    nodes: list[dict] = []
    node_ids: set[str] = set()
    edges = _EdgeSet()

    nodes.append(_node(center, is_center=True))
    node_ids.add(center.id)

    uid = user_node_id(viewing_user_id)
    nodes.append({"id": uid, "label": USER_NODE_LABEL, "groups": [], "colors": [],
                  "is_center": False})
    node_ids.add(uid)

    if center.relationship_to_user is not None:
        edges.add(_user_edge(center.id, viewing_user_id, center.relationship_to_user, translate))

    relationships = center.relationships_from or []

    # Direct connections become nodes
    for rel in relationships:
        related = rel.related_person
        if rel.related_person_id in node_ids:
            continue
        nodes.append(_node(related))
        node_ids.add(rel.related_person_id)
        if related.relationship_to_user is not None:
            edges.add(_user_edge(rel.related_person_id, viewing_user_id,
                                 related.relationship_to_user, translate))

    # Center <-> direct connections
    for rel in relationships:
        if rel.related_person_id == center.id or rel.related_person_id not in node_ids:
            continue
        edges.add(canonical_edge(center.id, rel.related_person_id, rel.relationship_type, translate))

    # Direct connection <-> direct connection, never adding nodes
    for rel in relationships:
        origin = rel.related_person_id
        for sub in rel.related_person.relationships_from or []:
            if sub.related_person_id == origin:
                continue
            if origin not in node_ids or sub.related_person_id not in node_ids:
                continue
            edges.add(canonical_edge(origin, sub.related_person_id, sub.relationship_type, translate))

    logger.debug("Built graph for person %s: %d nodes, %d edges",
                 center.id, len(nodes), len(edges.edges))
    return {"nodes": nodes, "edges": edges.edges}
