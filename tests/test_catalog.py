"""Tests for business configuration and the question catalog."""

import json

import pytest

from qualification.catalog import (
    DEFAULT_BUSINESS_CONFIG,
    BusinessConfig,
    load_business_config,
)
from qualification.exceptions import ConfigurationError


class TestGreeting:
    def test_name_substituted(self):
        assert DEFAULT_BUSINESS_CONFIG.render_greeting("Ravi").startswith("Hi Ravi!")

    def test_fallback_name(self):
        assert DEFAULT_BUSINESS_CONFIG.render_greeting(None).startswith("Hi there!")
        assert DEFAULT_BUSINESS_CONFIG.render_greeting("  ").startswith("Hi there!")

    def test_opening_message_is_greeting_plus_first_question(self, small_config):
        assert small_config.opening_message("Asha") == "Hello Asha! What city?"

    def test_closing_message_names_business(self, small_config):
        assert "Our team at Acme Homes" in small_config.closing_message


class TestCatalog:
    def test_match_question_ignores_case_and_whitespace(self, small_config):
        assert small_config.match_question("  what   CITY? ") == "What city?"
        assert small_config.match_question("Where?") is None
        assert small_config.match_question(None) is None

    def test_empty_catalog_rejected(self):
        config = BusinessConfig("X", "retail", "Y", "Hi", ("", "  "))
        with pytest.raises(ConfigurationError):
            config.validate()
        with pytest.raises(ConfigurationError):
            config.opening_message("Asha")

    def test_duplicate_questions_rejected(self):
        config = BusinessConfig("X", "retail", "Y", "Hi", ("Budget?", "budget?"))
        with pytest.raises(ConfigurationError):
            config.validate()

    def test_default_config(self):
        assert DEFAULT_BUSINESS_CONFIG.name == "GrowEasy Realtors"
        assert len(DEFAULT_BUSINESS_CONFIG.qualifying_questions) == 5
        assert len(DEFAULT_BUSINESS_CONFIG.criteria.hot) == 5


class TestLoading:
    def test_from_dict_camel_case(self):
        config = BusinessConfig.from_dict({
            "name": "Acme",
            "industry": "automotive",
            "location": "Delhi",
            "greeting": "Hey {name}",
            "qualifyingQuestions": ["Model?", "Budget?"],
            "hotCriteria": ["Ready to buy"],
            "coldCriteria": ["Browsing"],
            "invalidCriteria": ["Spam"],
        })
        assert config.qualifying_questions == ("Model?", "Budget?")
        assert config.criteria.hot == ("Ready to buy",)

    def test_round_trip_snake_case(self, small_config):
        assert BusinessConfig.from_dict(small_config.to_dict()) == small_config

    def test_non_list_field_rejected(self):
        with pytest.raises(ConfigurationError):
            BusinessConfig.from_dict({"qualifyingQuestions": "Budget?"})

    def test_non_object_criteria_rejected(self):
        with pytest.raises(ConfigurationError, match="criteria"):
            BusinessConfig.from_dict({"criteria": ["hot"]})

    def test_load_default_when_no_path(self):
        assert load_business_config(None) is DEFAULT_BUSINESS_CONFIG

    def test_load_from_file(self, tmp_path, small_config):
        path = tmp_path / "business.json"
        path.write_text(json.dumps(small_config.to_dict()), encoding="utf-8")
        assert load_business_config(str(path)).qualifying_questions == ("What city?", "Budget?")

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "business.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_business_config(str(path))

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_business_config(str(tmp_path / "missing.json"))
