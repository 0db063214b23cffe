from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


def _required_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name cannot be blank")
    return v


# ── Auth ──

class RegisterIn(BaseModel):
    email: str
    name: str
    password: str
    locale: str = "en"

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Invalid email address")
        return v


class LoginIn(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    locale: str


class LanguageIn(BaseModel):
    language: str


class ProfileIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_name(v)


# ── People ──

class PersonCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    surname: Optional[str] = None
    nickname: Optional[str] = None
    notes: Optional[str] = None
    last_contact: Optional[date] = None
    relationship_to_user_id: Optional[str] = None
    group_ids: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_name(v)


class PersonUpdate(PersonCreate):
    pass


class PersonOut(BaseModel):
    id: str
    name: str
    surname: Optional[str] = None
    nickname: Optional[str] = None
    display_name: str
    notes: Optional[str] = None
    last_contact: Optional[date] = None
    relationship_to_user_id: Optional[str] = None
    group_ids: list[str] = Field(default_factory=list)


# ── Groups ──

class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)


class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None


# ── Relationship types ──

class RelationshipTypeCreate(BaseModel):
    label: str = Field(min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    inverse_id: Optional[str] = None
    symmetric: bool = False


class RelationshipTypeUpdate(RelationshipTypeCreate):
    pass


class RelationshipTypeOut(BaseModel):
    id: str
    name: Optional[str] = None
    label: str
    display_label: str
    color: Optional[str] = None
    inverse_id: Optional[str] = None


# ── Relationships ──

class RelCreate(BaseModel):
    person_id: str
    related_person_id: str
    relationship_type_id: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("related_person_id")
    @classmethod
    def validate_not_self(cls, v, info):
        if v == info.data.get("person_id"):
            raise ValueError("A person cannot be related to themselves")
        return v


class RelUpdate(BaseModel):
    relationship_type_id: Optional[str] = None
    notes: Optional[str] = None


class RelOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    person_id: str
    related_person_id: str
    relationship_type_id: Optional[str] = None
    notes: Optional[str] = None


# ── Graph snapshot (input of the assembler) ──

class GraphGroupRef(BaseModel):
    name: str
    color: Optional[str] = None


class GraphRelationshipType(BaseModel):
    label: str
    name: Optional[str] = None
    color: Optional[str] = None
    inverse: Optional[GraphRelationshipType] = None


class GraphSubRelationship(BaseModel):
    related_person_id: str
    relationship_type: Optional[GraphRelationshipType] = None


class GraphRelatedPerson(BaseModel):
    id: str
    name: str
    surname: Optional[str] = None
    nickname: Optional[str] = None
    groups: Optional[list[GraphGroupRef]] = Field(default_factory=list)
    relationship_to_user: Optional[GraphRelationshipType] = None
    relationships_from: Optional[list[GraphSubRelationship]] = Field(default_factory=list)


class GraphRelationship(BaseModel):
    related_person_id: str
    related_person: GraphRelatedPerson
    relationship_type: Optional[GraphRelationshipType] = None


class GraphPerson(BaseModel):
    id: str
    name: str
    surname: Optional[str] = None
    nickname: Optional[str] = None
    groups: Optional[list[GraphGroupRef]] = Field(default_factory=list)
    relationship_to_user: Optional[GraphRelationshipType] = None
    relationships_from: list[GraphRelationship] = Field(default_factory=list)


# ── Graph output ──

class GraphNode(BaseModel):
    id: str
    label: str
    groups: list[str]
    colors: list[str]
    is_center: bool


class GraphEdge(BaseModel):
    source: str
    target: str
    label: str
    color: str


class GraphOut(BaseModel):
    nodes: list[GraphNode]
    edges: list[GraphEdge]


# ── Export ──

class ExportOut(BaseModel):
    version: str
    export_date: datetime
    user: dict
    groups: list[dict]
    people: list[dict]
    relationship_types: list[dict]
