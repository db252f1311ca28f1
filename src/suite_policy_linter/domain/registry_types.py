from typing import TypedDict


class RuleRegistryEntry(TypedDict, total=False):
    display_name: str
    section: str
    short_description: str
    rationale: str
    guidance: str
    severity: str
    pylint_code: str
    symbol: str
    message_template: str
    # True for guideline items with no mechanical check
    documentation_only: bool
    references: list[str]
