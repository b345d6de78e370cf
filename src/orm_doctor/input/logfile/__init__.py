from orm_doctor.input.logfile.adapter import LogFileInput
from orm_doctor.input.logfile.parser import DurationLogEntry, PostgresLogLineParser

__all__ = ["DurationLogEntry", "LogFileInput", "PostgresLogLineParser"]
