"""Tests for ledger/export.py."""
from ledger import crud, groups
from ledger.export import export_user_data


class TestExport:
    def test_full_export(self, db, user_alice, alice_types, family):
        doc = export_user_data(db, user_alice)
        assert doc["version"] == "1.0"
        assert doc["user"]["email"] == "alice@example.com"
        assert {p["name"] for p in doc["people"]} == {"Dad", "Mom", "Kid"}
        assert len(doc["relationship_types"]) == len(alice_types)
        kid = next(p for p in doc["people"] if p["name"] == "Kid")
        assert kid["relationship_to_user"] == {"name": "FRIEND", "label": "Friend"}
        mom = next(p for p in doc["people"] if p["name"] == "Mom")
        assert {r["related_person_name"] for r in mom["relationships"]} == {"Dad", "Kid"}

    def test_related_name_format(self, db, user_alice, alice_types, make_person):
        a = make_person("Robert", nickname="Bob", surname="Smith")
        b = make_person("Ann")
        crud.create_relationship(db, user_alice.id, b.id, a.id, alice_types["FRIEND"].id)
        doc = export_user_data(db, user_alice)
        ann = next(p for p in doc["people"] if p["name"] == "Ann")
        assert ann["relationships"][0]["related_person_name"] == "Robert 'Bob' Smith"

    def test_group_filter(self, db, user_alice, alice_types, make_person):
        work = groups.create_group(db, user_alice.id, "Work")
        gym = groups.create_group(db, user_alice.id, "Gym")
        a = make_person("Ann", group_ids=[work.id, gym.id])
        b = make_person("Ben", group_ids=[gym.id])
        crud.create_relationship(db, user_alice.id, a.id, b.id, alice_types["FRIEND"].id)

        doc = export_user_data(db, user_alice, [work.id])
        assert [p["name"] for p in doc["people"]] == ["Ann"]
        assert doc["people"][0]["groups"] == ["Work"]
        assert doc["people"][0]["relationships"] == []
        assert [g["name"] for g in doc["groups"]] == ["Work"]

    def test_excludes_deleted(self, db, user_alice, family):
        crud.delete_person(db, user_alice.id, family["dad"].id)
        doc = export_user_data(db, user_alice)
        assert "Dad" not in {p["name"] for p in doc["people"]}
        mom = next(p for p in doc["people"] if p["name"] == "Mom")
        assert [r["related_person_name"] for r in mom["relationships"]] == ["Kid"]
