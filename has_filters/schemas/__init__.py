from .rules import BlankRule, CompositeRule, Conjunction, LeafRule, Rule, ScopeRule, cast_boolean

__all__ = [
    "BlankRule",
    "CompositeRule",
    "Conjunction",
    "LeafRule",
    "Rule",
    "ScopeRule",
    "cast_boolean",
]
