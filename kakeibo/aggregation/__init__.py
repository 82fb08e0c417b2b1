"""Category aggregation package."""

from kakeibo.aggregation.engine import aggregate, build_report, is_income, summarize

__all__ = ["aggregate", "build_report", "is_income", "summarize"]
