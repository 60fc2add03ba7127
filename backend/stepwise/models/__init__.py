from stepwise.models.category import Category
from stepwise.models.checklist import Checklist
from stepwise.models.step import Step

__all__ = [
    "Category",
    "Checklist",
    "Step",
]
