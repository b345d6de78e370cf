from orm_doctor.input.base import QueryInput
from orm_doctor.input.capture import CaptureFileInput
from orm_doctor.input.logfile import LogFileInput, PostgresLogLineParser
from orm_doctor.input.manual import ManualInput

__all__ = [
    "QueryInput",
    "ManualInput",
    "CaptureFileInput",
    "LogFileInput",
    "PostgresLogLineParser",
]
