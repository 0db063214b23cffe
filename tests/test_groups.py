"""Tests for ledger/groups.py: group CRUD and membership."""
import pytest

from ledger import crud, groups


class TestGroupCRUD:
    def test_create(self, db, user_alice):
        g = groups.create_group(db, user_alice.id, "Friends", "Close ones", "#3B82F6")
        assert g.name == "Friends"
        assert g.description == "Close ones"
        assert g.color == "#3B82F6"

    def test_get_not_found(self, db, user_alice):
        assert groups.get_group(db, user_alice.id, "nonexistent") is None

    def test_get_other_user(self, db, user_alice, user_bob):
        g = groups.create_group(db, user_alice.id, "Friends")
        assert groups.get_group(db, user_bob.id, g.id) is None

    def test_update(self, db, user_alice):
        g = groups.create_group(db, user_alice.id, "Old")
        groups.update_group(db, user_alice.id, g.id, "New", "desc", None)
        fetched = groups.get_group(db, user_alice.id, g.id)
        assert fetched.name == "New"
        assert fetched.color is None

    def test_list_sorted(self, db, user_alice):
        groups.create_group(db, user_alice.id, "Work")
        groups.create_group(db, user_alice.id, "Family")
        assert [g.name for g in groups.list_groups(db, user_alice.id)] == ["Family", "Work"]


class TestDeleteGroup:
    def test_soft_delete_keeps_people(self, db, user_alice, make_person):
        g = groups.create_group(db, user_alice.id, "Friends")
        p = make_person("Ann", group_ids=[g.id])
        assert groups.delete_group(db, user_alice.id, g.id) is True
        assert groups.get_group(db, user_alice.id, g.id) is None
        assert crud.get_person(db, user_alice.id, p.id) is not None

    def test_delete_people(self, db, user_alice, make_person):
        g = groups.create_group(db, user_alice.id, "Friends")
        a = make_person("Ann", group_ids=[g.id])
        b = make_person("Ben", group_ids=[g.id])
        other = make_person("Cat")
        groups.delete_group(db, user_alice.id, g.id, delete_people=True)
        assert crud.get_person(db, user_alice.id, a.id) is None
        assert crud.get_person(db, user_alice.id, b.id) is None
        assert crud.get_person(db, user_alice.id, other.id) is not None

    def test_delete_people_empty_group(self, db, user_alice):
        g = groups.create_group(db, user_alice.id, "Empty")
        assert groups.delete_group(db, user_alice.id, g.id, delete_people=True) is True

    def test_other_user_cannot_delete(self, db, user_alice, user_bob):
        g = groups.create_group(db, user_alice.id, "Friends")
        assert groups.delete_group(db, user_bob.id, g.id) is False
        assert groups.get_group(db, user_alice.id, g.id) is not None


class TestMembership:
    def test_add_and_list(self, db, user_alice, make_person):
        g = groups.create_group(db, user_alice.id, "G")
        p = make_person("Ann")
        groups.add_member(db, user_alice.id, g.id, p.id)
        assert [m.id for m in groups.list_members(db, user_alice.id, g.id)] == [p.id]

    def test_add_idempotent(self, db, user_alice, make_person):
        g = groups.create_group(db, user_alice.id, "G")
        p = make_person("Ann")
        groups.add_member(db, user_alice.id, g.id, p.id)
        groups.add_member(db, user_alice.id, g.id, p.id)
        assert len(groups.list_members(db, user_alice.id, g.id)) == 1

    def test_remove(self, db, user_alice, make_person):
        g = groups.create_group(db, user_alice.id, "G")
        p = make_person("Ann", group_ids=[g.id])
        groups.remove_member(db, user_alice.id, g.id, p.id)
        assert groups.list_members(db, user_alice.id, g.id) == []

    def test_add_unknown_person(self, db, user_alice):
        g = groups.create_group(db, user_alice.id, "G")
        with pytest.raises(ValueError):
            groups.add_member(db, user_alice.id, g.id, "nonexistent")
