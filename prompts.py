from typing import Iterable, Sequence

SCHEMA_VERSION = "menu-analysis/v2"

SYSTEM_PROMPT = """
You are a careful dietary assistant reading photographs of restaurant menus.
Return ONLY valid JSON matching the schema you are given. No extra text.
"""

ANALYSIS_SCHEMA_EXAMPLE = """
{
  "schemaVersion": "%(version)s",
  "summary": "one or two sentences on how well this menu fits the preferences",
  "overallCompatibility": 3.5,
  "suitableItems": [
    {"name": "item name", "rating": 5, "reason": "why it fits", "location": "where it is on the menu",
     "bbox": {"x": 0.1, "y": 0.2, "width": 0.3, "height": 0.05}}
  ],
  "neutralItems": [
    {"name": "item name", "rating": 3, "reason": "what to ask or modify", "location": "where it is on the menu"}
  ],
  "unsuitableItems": [
    {"name": "item name", "rating": 1, "reason": "why to avoid it", "location": "where it is on the menu"}
  ],
  "recommendations": [
    {"name": "item name", "rating": 5, "reason": "why recommended"}
  ],
  "menuSections": [
    {"section": "section heading", "compatibility": 4.0, "description": "how this section fits"}
  ]
}
""" % {"version": SCHEMA_VERSION}

USER_PROMPT_TEMPLATE = """
Analyze this restaurant menu image based on the following dietary preferences: {preferences}

Please provide:
1. Menu items that MATCH the preferences, rated 4-5 - "suitableItems"
2. Items that could work with changes or are unclear, rated 3 - "neutralItems"
3. Items that DO NOT MATCH the preferences, rated 1-2 - "unsuitableItems"
4. Your top 3 recommendations from the suitable items with brief explanations
5. A compatibility score from 1.0 to 5.0 for each menu section and for the menu overall

Ratings are integers from 1 (avoid) to 5 (perfect fit). "bbox" is optional: when you can
locate an item, give its box as fractions (0-1) of the image width and height.

Format your response as JSON with this structure (schema {version}):
{schema}
"""

LEARNED_PREFERENCES_TEMPLATE = """
Learned preferences from earlier feedback:
- Items the diner liked: {liked}
- Items the diner disliked: {disliked}
Rate similar dishes accordingly.
"""


def _join(items: Iterable[str]) -> str:
    items = sorted(items, key=str.lower)
    return ", ".join(items) if items else "none"


def build_prompt(
    dietary_preferences: Sequence[str],
    liked_items: Iterable[str] = (),
    disliked_items: Iterable[str] = (),
) -> str:
    liked, disliked = list(liked_items), list(disliked_items)
    prompt = USER_PROMPT_TEMPLATE.format(
        preferences=", ".join(dietary_preferences),
        version=SCHEMA_VERSION,
        schema=ANALYSIS_SCHEMA_EXAMPLE.strip(),
    ).strip()
    if liked or disliked:
        prompt += "\n" + LEARNED_PREFERENCES_TEMPLATE.format(
            liked=_join(liked), disliked=_join(disliked)
        ).rstrip()
    return prompt
