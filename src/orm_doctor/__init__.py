__version__ = "0.1.0"

from orm_doctor.analyzers import (
    AnalyzerRegistry,
    CascadeAllAnalyzer,
    CascadeRemoveIndependentAnalyzer,
    DivisionByZeroAnalyzer,
    FindAllAnalyzer,
    JoinOptimizationAnalyzer,
    LazyLoadingAnalyzer,
    MissingOrphanRemovalAnalyzer,
    OrphanRemovalWithoutCascadeAnalyzer,
    QueryAnalyzer,
    SlowQueryAnalyzer,
)
from orm_doctor.config import AnalyzerSettings, build_registry
from orm_doctor.core import AnalysisPipeline
from orm_doctor.domain import (
    AssociationMetadata,
    AssociationType,
    EntityMetadata,
    Issue,
    IssueCategory,
    IssueCollection,
    QueryRecord,
    QueryRecordCollection,
    Severity,
    StackFrame,
    Suggestion,
)
from orm_doctor.exceptions import ConfigurationError, MetadataError, OrmDoctorError
from orm_doctor.input import CaptureFileInput, LogFileInput, ManualInput, QueryInput
from orm_doctor.metadata import MetadataProvider, SqlAlchemyMetadataProvider, StaticMetadataProvider
from orm_doctor.output import ConsoleIssueOutput, IssueOutput
from orm_doctor.suggestions import SuggestionFactory

__all__ = [
    "__version__",
    "AnalysisPipeline",
    "AnalyzerSettings",
    "build_registry",
    "QueryRecord",
    "QueryRecordCollection",
    "StackFrame",
    "Issue",
    "IssueCategory",
    "IssueCollection",
    "Severity",
    "Suggestion",
    "SuggestionFactory",
    "AssociationMetadata",
    "AssociationType",
    "EntityMetadata",
    "OrmDoctorError",
    "ConfigurationError",
    "MetadataError",
    "QueryInput",
    "ManualInput",
    "CaptureFileInput",
    "LogFileInput",
    "MetadataProvider",
    "StaticMetadataProvider",
    "SqlAlchemyMetadataProvider",
    "QueryAnalyzer",
    "AnalyzerRegistry",
    "JoinOptimizationAnalyzer",
    "LazyLoadingAnalyzer",
    "CascadeAllAnalyzer",
    "CascadeRemoveIndependentAnalyzer",
    "MissingOrphanRemovalAnalyzer",
    "OrphanRemovalWithoutCascadeAnalyzer",
    "SlowQueryAnalyzer",
    "FindAllAnalyzer",
    "DivisionByZeroAnalyzer",
    "IssueOutput",
    "ConsoleIssueOutput",
]
