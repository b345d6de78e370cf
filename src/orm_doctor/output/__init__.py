"""Issue destinations.

``SqsIssueOutput`` lives in ``orm_doctor.output.sqs`` and needs the ``sqs``
extra (aiobotocore).
"""

from orm_doctor.output.base import IssueOutput
from orm_doctor.output.console import ConsoleIssueOutput

__all__ = ["IssueOutput", "ConsoleIssueOutput"]
