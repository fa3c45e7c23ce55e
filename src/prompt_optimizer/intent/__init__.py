from .analyzer import analyze
from .custom_rules import CustomRule, CustomRuleError, load_custom_rules
from .risk import compute_risk_score, derive_risk_level
from .rules import RULES, run_rules

__all__ = [
    "CustomRule",
    "CustomRuleError",
    "RULES",
    "analyze",
    "compute_risk_score",
    "derive_risk_level",
    "load_custom_rules",
    "run_rules",
]
