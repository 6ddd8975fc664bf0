from typing import TypedDict


class RuleRegistryEntry(TypedDict, total=False):
    short_description: str
    display_name: str
    rationale: str
    default_severity: str
    manual_instructions: str
    proactive_guidance: str
    bad_example: str
    good_example: str
    references: list[str]
