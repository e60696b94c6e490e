"""
Locale table and slug helper tests
"""

import json

import pytest

from contract_analyser.shared.services.locale_service import SUPPORTED_LANGUAGES, LocaleService
from contract_analyser.shared.utils.slug import message_key, slugify_key


class TestSlug:

    @pytest.mark.parametrize("value, expected", [
        ("Islamic Law", "islamic_law"),
        ("data-protection", "data_protection"),
        ("  UK ", "uk"),
        ("Data -  Protection", "data_protection"),
        (None, ""),
    ])
    def test_slugify_key(self, value, expected):
        assert slugify_key(value) == expected

    def test_message_key(self):
        assert message_key("jurisdiction", "Islamic Law") == "jurisdiction_islamic_law"


class TestLocaleService:

    @pytest.fixture(autouse=True)
    def setup(self):
        self.locale = LocaleService()

    def test_all_languages_loaded(self):
        assert set(SUPPORTED_LANGUAGES) <= set(self.locale.languages)

    def test_every_table_has_the_english_keys(self):
        english = set(self.locale._tables["en"])
        for language in SUPPORTED_LANGUAGES:
            assert set(self.locale._tables[language]) == english, language

    def test_translate(self):
        assert self.locale.translate("risk_high", "fr") == "Risque élevé"
        assert self.locale.translate("risk_high") == "High Risk"

    def test_unknown_language_falls_back_to_english(self):
        assert self.locale.translate("risk_high", "de") == "High Risk"

    def test_unknown_key(self):
        assert self.locale.translate("no_such_key", "fr") == "no_such_key"
        assert self.locale.translate("no_such_key", "fr", default="fallback") == "fallback"

    def test_placeholders(self):
        message = self.locale.translate("email_hello", "en", recipientName="Dana")
        assert "Dana" in message
        assert "{{" not in message

    def test_missing_placeholder_is_left_in_place(self):
        assert "{{recipientName}}" in self.locale.translate("email_hello", "en")

    def test_label(self):
        assert self.locale.label("jurisdiction", "Islamic Law", "fr") == "Droit islamique"
        assert self.locale.label("category", "data-protection", "es") == \
            self.locale.translate("category_data_protection", "es")

    def test_label_falls_back_to_raw_value(self):
        assert self.locale.label("jurisdiction", "Mars Colony", "fr") == "Mars Colony"

    def test_missing_english_table(self, tmp_path):
        (tmp_path / "fr.json").write_text(json.dumps({"a": "b"}), encoding="utf-8")
        with pytest.raises(ValueError):
            LocaleService(locales_dir=tmp_path)
