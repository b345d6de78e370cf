import json

from aiobotocore.session import get_session

from orm_doctor.domain import Issue


class SqsIssueOutput:
    def __init__(self, queue_url: str, region: str = "us-east-1") -> None:
        self._queue_url = queue_url
        self._region = region
        self._session = get_session()

    @property
    def name(self) -> str:
        return "sqs"

    async def send(self, issue: Issue) -> None:
        async with self._session.create_client("sqs", region_name=self._region) as client:
            await client.send_message(
                QueueUrl=self._queue_url,
                MessageBody=self._serialize_issue(issue),
                MessageAttributes={
                    "severity": {"DataType": "String", "StringValue": issue.severity.label},
                    "type": {"DataType": "String", "StringValue": issue.type},
                },
            )

    @staticmethod
    def _serialize_issue(issue: Issue) -> str:
        return json.dumps(issue.to_dict())
