"""Tests for the disambiguation policy schema."""

from textwrap import dedent

import pytest
from pydantic import ValidationError

from charimport.core.schema import CharacterDetails
from charimport.core.schema.policy import DisambiguationPolicy, DisambiguationRule


class TestDisambiguationRule:
    """Tests for DisambiguationRule enum."""

    def test_values(self):
        assert DisambiguationRule.CLASS_TOKEN == "class_token"
        assert DisambiguationRule.NON_HYBRID == "non_hybrid"
        assert DisambiguationRule.LONGEST == "longest"


class TestDisambiguationPolicy:
    """Tests for DisambiguationPolicy model."""

    def test_defaults(self):
        policy = DisambiguationPolicy()
        assert policy.hybrid == [DisambiguationRule.CLASS_TOKEN, DisambiguationRule.NON_HYBRID]
        assert policy.single_class == [DisambiguationRule.CLASS_TOKEN, DisambiguationRule.NON_HYBRID]
        assert policy.classless == [DisambiguationRule.LONGEST]
        assert policy.hybrid_marker == "Hybrid"
        assert policy.class_stop_words == ["Class", "Hybrid"]

    @pytest.mark.parametrize(
        ("class_count", "attr"),
        [(0, "classless"), (1, "single_class"), (2, "hybrid"), (3, "hybrid")],
    )
    def test_rules_for(self, class_count, attr):
        policy = DisambiguationPolicy()
        assert policy.rules_for(class_count) == getattr(policy, attr)

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text(
            dedent("""\
                single_class:
                  - non_hybrid
                  - class_token
                hybrid_marker: Hyb
            """),
            encoding="utf-8",
        )
        policy = DisambiguationPolicy.from_yaml(path)
        assert policy.single_class == [DisambiguationRule.NON_HYBRID, DisambiguationRule.CLASS_TOKEN]
        assert policy.hybrid_marker == "Hyb"
        assert policy.classless == [DisambiguationRule.LONGEST]

    def test_empty_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("", encoding="utf-8")
        assert DisambiguationPolicy.from_yaml(path) == DisambiguationPolicy()

    def test_unknown_rule(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("hybrid: [alphabetical]\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            DisambiguationPolicy.from_yaml(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DisambiguationPolicy.from_yaml(tmp_path / "nope.yaml")

    def test_load_without_path(self):
        assert DisambiguationPolicy.load(None) == DisambiguationPolicy()


class TestCharacterDetails:
    """Tests for CharacterDetails model."""

    def test_defaults(self):
        details = CharacterDetails()
        assert details.name == "Unnamed Character"
        assert details.level == 1
        assert details.classes == []
        assert details.abilities.str_ == 10

    def test_ability_aliases(self):
        details = CharacterDetails(abilities={"str": 18, "int": 8})
        assert details.abilities.str_ == 18
        assert details.abilities.int_ == 8

    def test_level_must_be_positive(self):
        with pytest.raises(ValidationError):
            CharacterDetails(level=0)
