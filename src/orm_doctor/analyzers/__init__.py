from orm_doctor.analyzers.base import QueryAnalyzer
from orm_doctor.analyzers.cascade_all import CascadeAllAnalyzer
from orm_doctor.analyzers.cascade_remove_independent import CascadeRemoveIndependentAnalyzer
from orm_doctor.analyzers.composition import CompositionSignals, score_association
from orm_doctor.analyzers.division_by_zero import DivisionByZeroAnalyzer
from orm_doctor.analyzers.find_all import FindAllAnalyzer
from orm_doctor.analyzers.join_optimization import JoinOptimizationAnalyzer
from orm_doctor.analyzers.lazy_loading import LazyLoadingAnalyzer
from orm_doctor.analyzers.missing_orphan_removal import MissingOrphanRemovalAnalyzer
from orm_doctor.analyzers.orphan_removal_without_cascade import OrphanRemovalWithoutCascadeAnalyzer
from orm_doctor.analyzers.registry import AnalyzerRegistry
from orm_doctor.analyzers.slow_query import SlowQueryAnalyzer

__all__ = [
    "QueryAnalyzer",
    "AnalyzerRegistry",
    "CascadeAllAnalyzer",
    "CascadeRemoveIndependentAnalyzer",
    "CompositionSignals",
    "DivisionByZeroAnalyzer",
    "FindAllAnalyzer",
    "JoinOptimizationAnalyzer",
    "LazyLoadingAnalyzer",
    "MissingOrphanRemovalAnalyzer",
    "OrphanRemovalWithoutCascadeAnalyzer",
    "SlowQueryAnalyzer",
    "score_association",
]
