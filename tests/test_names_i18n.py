"""Tests for ledger/names.py and ledger/i18n.py."""
from ledger import i18n
from ledger.names import format_display_name, format_graph_name
from ledger.schemas import GraphRelatedPerson


class TestDisplayName:
    def test_all_parts(self):
        assert format_display_name("Robert", "Bob", "Smith") == "Robert 'Bob' Smith"

    def test_name_only(self):
        assert format_display_name("Robert") == "Robert"

    def test_blank_parts_dropped(self):
        assert format_display_name("Robert", "  ", "") == "Robert"


class TestGraphName:
    def test_nickname_wins(self):
        p = GraphRelatedPerson(id="1", name="Robert", nickname="Bob", surname="Smith")
        assert format_graph_name(p) == "Bob"

    def test_name_and_surname(self):
        p = GraphRelatedPerson(id="1", name="Robert", surname="Smith")
        assert format_graph_name(p) == "Robert Smith"


class TestLocale:
    def test_normalize(self):
        assert i18n.normalize_locale("es") == "es-ES"
        assert i18n.normalize_locale("it_it") == "it-IT"
        assert i18n.normalize_locale("fr-FR") is None

    def test_pick_prefers_cookie(self):
        assert i18n.pick_locale("it-IT", "es-ES,es;q=0.9", "en") == "it-IT"

    def test_pick_accept_language_order(self):
        assert i18n.pick_locale(None, "fr-FR,es;q=0.8,en;q=0.5", "en") == "es-ES"

    def test_pick_falls_back_to_user_then_default(self):
        assert i18n.pick_locale(None, None, "es-ES") == "es-ES"
        assert i18n.pick_locale(None, "fr", None) == "en"


class TestTranslator:
    def test_namespace_lookup(self):
        t = i18n.get_translator("es-ES", "relationshipTypes.defaults")
        assert t("parent") == "Padre"

    def test_missing_key_returns_key(self):
        t = i18n.get_translator("es-ES", "relationshipTypes.defaults")
        assert t("doesNotExist") == "doesNotExist"

    def test_unsupported_locale_uses_default(self):
        t = i18n.get_translator("fr-FR", "relationshipTypes.defaults")
        assert t("parent") == "Parent"

    def test_every_default_key_translated(self):
        from ledger.relationship_types import DEFAULT_RELATIONSHIP_TYPE_KEYS
        for locale in i18n.SUPPORTED_LOCALES:
            messages = i18n.load_messages(locale)["relationshipTypes"]["defaults"]
            assert set(DEFAULT_RELATIONSHIP_TYPE_KEYS.values()) <= set(messages)
