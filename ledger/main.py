import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from .db import get_db, init_db
from .auth import (
    SESSION_COOKIE, SESSION_MAX_AGE, authenticate_user, create_session_token,
    create_user, get_current_user, update_locale, update_profile,
)
from .i18n import LOCALE_COOKIE, get_translator, pick_locale
from .models import Person, User
from .names import format_display_name
from . import catalog, crud, export, graph, groups, schemas

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield


app = FastAPI(lifespan=lifespan)


def _translator(request: Request, user: User, namespace: str):
    locale = pick_locale(request.cookies.get(LOCALE_COOKIE),
                         request.headers.get("accept-language"), user.locale)
    return get_translator(locale, namespace)


def _person_out(p: Person) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "surname": p.surname,
        "nickname": p.nickname,
        "display_name": format_display_name(p.name, p.nickname, p.surname),
        "notes": p.notes,
        "last_contact": p.last_contact,
        "relationship_to_user_id": p.relationship_to_user_id,
        "group_ids": crud.live_group_ids(p),
    }


# ── Auth ──

@app.post("/api/auth/register", response_model=schemas.UserOut)
def register(body: schemas.RegisterIn, response: Response, db: Session = Depends(get_db)):
    try:
        user = create_user(db, body.email, body.name, body.password, body.locale)
    except ValueError as e:
        raise HTTPException(400, str(e))
    response.set_cookie(SESSION_COOKIE, create_session_token(user.id),
                        max_age=SESSION_MAX_AGE, httponly=True, samesite="lax")
    return user


@app.post("/api/auth/login", response_model=schemas.UserOut)
def login(body: schemas.LoginIn, response: Response, db: Session = Depends(get_db)):
    user = authenticate_user(db, body.email, body.password)
    if not user:
        raise HTTPException(401, "Invalid email or password")
    response.set_cookie(SESSION_COOKIE, create_session_token(user.id),
                        max_age=SESSION_MAX_AGE, httponly=True, samesite="lax")
    return user


@app.post("/api/auth/logout")
def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE)
    return {"ok": True}


@app.get("/api/auth/me", response_model=schemas.UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@app.put("/api/user/language", response_model=schemas.UserOut)
def set_language(body: schemas.LanguageIn, response: Response, db: Session = Depends(get_db),
                 user: User = Depends(get_current_user)):
    try:
        user = update_locale(db, user, body.language)
    except ValueError as e:
        raise HTTPException(400, str(e))
    response.set_cookie(LOCALE_COOKIE, user.locale, max_age=SESSION_MAX_AGE, samesite="lax")
    return user


@app.put("/api/user/profile", response_model=schemas.UserOut)
def update_profile_route(body: schemas.ProfileIn, db: Session = Depends(get_db),
                         user: User = Depends(get_current_user)):
    return update_profile(db, user, body.name)


# ── People ──

@app.get("/api/people", response_model=list[schemas.PersonOut])
def list_people(group_id: str | None = None, db: Session = Depends(get_db),
                user: User = Depends(get_current_user)):
    return [_person_out(p) for p in crud.list_people(db, user.id, group_id=group_id)]


@app.post("/api/people", response_model=schemas.PersonOut)
def add_person(body: schemas.PersonCreate, db: Session = Depends(get_db),
               user: User = Depends(get_current_user)):
    try:
        p = crud.create_person(db, user.id, **body.model_dump())
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _person_out(p)


@app.get("/api/people/{person_id}", response_model=schemas.PersonOut)
def get_person(person_id: str, db: Session = Depends(get_db),
               user: User = Depends(get_current_user)):
    p = crud.get_person(db, user.id, person_id)
    if p is None:
        raise HTTPException(404, "Person not found")
    return _person_out(p)


@app.put("/api/people/{person_id}", response_model=schemas.PersonOut)
def update_person(person_id: str, body: schemas.PersonUpdate, db: Session = Depends(get_db),
                  user: User = Depends(get_current_user)):
    try:
        p = crud.update_person(db, user.id, person_id, **body.model_dump())
    except ValueError as e:
        raise HTTPException(400, str(e))
    if p is None:
        raise HTTPException(404, "Person not found")
    return _person_out(p)


@app.delete("/api/people/{person_id}")
def delete_person(person_id: str, db: Session = Depends(get_db),
                  user: User = Depends(get_current_user)):
    if not crud.delete_person(db, user.id, person_id):
        raise HTTPException(404, "Person not found")
    return {"ok": True}


@app.get("/api/people/{person_id}/graph", response_model=schemas.GraphOut)
def person_graph(person_id: str, request: Request, db: Session = Depends(get_db),
                 user: User = Depends(get_current_user)):
    snapshot = crud.load_graph_snapshot(db, person_id, user.id)
    if snapshot is None:
        raise HTTPException(404, "Person not found")
    translate = _translator(request, user, "relationshipTypes.defaults")
    return graph.build_graph(snapshot, user.id, translate)


# ── Relationships ──

@app.post("/api/relationships", response_model=schemas.RelOut)
def add_rel(body: schemas.RelCreate, db: Session = Depends(get_db),
            user: User = Depends(get_current_user)):
    try:
        return crud.create_relationship(db, user.id, body.person_id, body.related_person_id,
                                        body.relationship_type_id, body.notes)
    except ValueError as e:
        raise HTTPException(400, str(e))


@app.put("/api/relationships/{rel_id}", response_model=schemas.RelOut)
def update_rel(rel_id: str, body: schemas.RelUpdate, db: Session = Depends(get_db),
               user: User = Depends(get_current_user)):
    try:
        r = crud.update_relationship(db, user.id, rel_id, body.relationship_type_id, body.notes)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if r is None:
        raise HTTPException(404, "Relationship not found")
    return r


@app.delete("/api/relationships/{rel_id}")
def delete_rel(rel_id: str, db: Session = Depends(get_db),
               user: User = Depends(get_current_user)):
    if not crud.delete_relationship(db, user.id, rel_id):
        raise HTTPException(404, "Relationship not found")
    return {"ok": True}


# ── Groups ──

@app.get("/api/groups", response_model=list[schemas.GroupOut])
def list_groups(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return groups.list_groups(db, user.id)


@app.post("/api/groups", response_model=schemas.GroupOut)
def add_group(body: schemas.GroupCreate, db: Session = Depends(get_db),
              user: User = Depends(get_current_user)):
    return groups.create_group(db, user.id, body.name, body.description, body.color)


@app.get("/api/groups/{group_id}", response_model=schemas.GroupOut)
def get_group(group_id: str, db: Session = Depends(get_db),
              user: User = Depends(get_current_user)):
    g = groups.get_group(db, user.id, group_id)
    if g is None:
        raise HTTPException(404, "Group not found")
    return g


@app.put("/api/groups/{group_id}", response_model=schemas.GroupOut)
def update_group(group_id: str, body: schemas.GroupCreate, db: Session = Depends(get_db),
                 user: User = Depends(get_current_user)):
    g = groups.update_group(db, user.id, group_id, body.name, body.description, body.color)
    if g is None:
        raise HTTPException(404, "Group not found")
    return g


@app.delete("/api/groups/{group_id}")
def delete_group(group_id: str, delete_people: bool = False, db: Session = Depends(get_db),
                 user: User = Depends(get_current_user)):
    if not groups.delete_group(db, user.id, group_id, delete_people=delete_people):
        raise HTTPException(404, "Group not found")
    return {"message": "Group deleted successfully"}


@app.get("/api/groups/{group_id}/members", response_model=list[schemas.PersonOut])
def list_group_members(group_id: str, db: Session = Depends(get_db),
                       user: User = Depends(get_current_user)):
    if groups.get_group(db, user.id, group_id) is None:
        raise HTTPException(404, "Group not found")
    return [_person_out(p) for p in groups.list_members(db, user.id, group_id)]


@app.post("/api/groups/{group_id}/members/{person_id}")
def add_group_member(group_id: str, person_id: str, db: Session = Depends(get_db),
                     user: User = Depends(get_current_user)):
    try:
        groups.add_member(db, user.id, group_id, person_id)
    except ValueError as e:
        raise HTTPException(404, str(e))
    return {"ok": True}


@app.delete("/api/groups/{group_id}/members/{person_id}")
def remove_group_member(group_id: str, person_id: str, db: Session = Depends(get_db),
                        user: User = Depends(get_current_user)):
    try:
        groups.remove_member(db, user.id, group_id, person_id)
    except ValueError as e:
        raise HTTPException(404, str(e))
    return {"ok": True}


# ── Relationship types ──

@app.get("/api/relationship-types", response_model=list[schemas.RelationshipTypeOut])
def list_types(request: Request, db: Session = Depends(get_db),
               user: User = Depends(get_current_user)):
    translate = _translator(request, user, "relationshipTypes.defaults")
    return [catalog.type_out(rt, translate) for rt in catalog.list_types(db, user.id)]


@app.get("/api/relationship-types/asymmetric")
def asymmetric_types(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return {"type_ids": catalog.find_asymmetric_inverses(db, user.id)}


@app.post("/api/relationship-types", response_model=schemas.RelationshipTypeOut)
def add_type(body: schemas.RelationshipTypeCreate, db: Session = Depends(get_db),
             user: User = Depends(get_current_user)):
    try:
        rt = catalog.create_type(db, user.id, body.label, body.color, body.inverse_id, body.symmetric)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return catalog.type_out(rt)


@app.put("/api/relationship-types/{type_id}", response_model=schemas.RelationshipTypeOut)
def update_type(type_id: str, body: schemas.RelationshipTypeUpdate, db: Session = Depends(get_db),
                user: User = Depends(get_current_user)):
    try:
        inverse_id = body.inverse_id if "inverse_id" in body.model_fields_set else catalog.KEEP
        rt = catalog.update_type(db, user.id, type_id, body.label, body.color,
                                 inverse_id, body.symmetric)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if rt is None:
        raise HTTPException(404, "Relationship type not found")
    return catalog.type_out(rt)


@app.delete("/api/relationship-types/{type_id}")
def delete_type(type_id: str, db: Session = Depends(get_db),
                user: User = Depends(get_current_user)):
    if not catalog.delete_type(db, user.id, type_id):
        raise HTTPException(404, "Relationship type not found")
    return {"ok": True}


# ── Export ──

@app.get("/api/user/export", response_model=schemas.ExportOut)
def export_data(group_ids: str | None = None, db: Session = Depends(get_db),
                user: User = Depends(get_current_user)):
    ids = group_ids.split(",") if group_ids else None
    return export.export_user_data(db, user, ids)


@app.get("/health")
def health():
    return {"ok": True}
