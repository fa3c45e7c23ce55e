from .checklist import CHECKLIST_ORDER, generate_checklist
from .quality import score_compiled, score_quality

__all__ = ["CHECKLIST_ORDER", "generate_checklist", "score_compiled", "score_quality"]
