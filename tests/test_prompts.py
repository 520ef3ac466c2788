import json

from prompts import ANALYSIS_SCHEMA_EXAMPLE, SCHEMA_VERSION, build_prompt
from schemas import MenuAnalysisResult


def test_prompt_lists_preferences_and_schema():
    prompt = build_prompt(["Vegetarian", "Nut-free"])
    assert "dietary preferences: Vegetarian, Nut-free" in prompt
    assert SCHEMA_VERSION in prompt
    for field in MenuAnalysisResult.model_fields:
        if field != "rawResponse":
            assert f'"{field}"' in prompt


def test_no_learned_clause_without_feedback():
    assert "Learned preferences" not in build_prompt(["Vegan"])
    assert "Learned preferences" not in build_prompt(["Vegan"], set(), set())


def test_learned_clause_with_feedback():
    prompt = build_prompt(["Vegan"], {"Tofu bowl", "falafel"}, set())
    assert "Learned preferences" in prompt
    assert "liked: falafel, Tofu bowl" in prompt
    assert "disliked: none" in prompt


def test_prompt_is_deterministic():
    a = build_prompt(["Keto"], ["b", "a"], ["d", "c"])
    b = build_prompt(["Keto"], ["a", "b"], ["c", "d"])
    assert a == b


def test_schema_example_is_valid_json():
    example = json.loads(ANALYSIS_SCHEMA_EXAMPLE)
    assert example["schemaVersion"] == SCHEMA_VERSION
    MenuAnalysisResult.model_validate(example)
