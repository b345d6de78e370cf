from orm_doctor.core.pipeline import AnalysisPipeline

__all__ = ["AnalysisPipeline"]
