import json

from aiobotocore.session import get_session
from aiomoto import mock_aws

from orm_doctor.domain import Issue, IssueCategory, QueryRecord, Severity
from orm_doctor.output import IssueOutput
from orm_doctor.output.sqs import SqsIssueOutput
from orm_doctor.suggestions import SuggestionFactory


def _issue(severity: Severity = Severity.CRITICAL) -> Issue:
    return Issue(
        type="lazy_loading",
        category=IssueCategory.PERFORMANCE,
        severity=severity,
        title="Lazy Loading Detected: 12 queries on Posts",
        description="12 sequential primary key fetches on posts.",
        data={"entity": "Posts", "query_count": 12},
        suggestion=SuggestionFactory().from_template(
            "eager_loading", {"entity": "Posts", "relation": "author", "query_count": 12}
        ),
        queries=(QueryRecord(sql="SELECT * FROM posts WHERE id = 1", execution_time_ms=1.5),),
    )


def test_sqs_output_implements_protocol():
    output = SqsIssueOutput(queue_url="https://sqs.us-east-1.amazonaws.com/123456789/test")
    assert isinstance(output, IssueOutput)


def test_sqs_output_name_property():
    output = SqsIssueOutput(queue_url="https://sqs.us-east-1.amazonaws.com/123456789/test")
    assert output.name == "sqs"


@mock_aws
async def test_sqs_output_send_to_queue():
    session = get_session()
    async with session.create_client("sqs", region_name="us-east-1") as client:
        response = await client.create_queue(QueueName="test-queue")
        queue_url = response["QueueUrl"]

        output = SqsIssueOutput(queue_url=queue_url, region="us-east-1")

        await output.send(_issue())

        messages = await client.receive_message(QueueUrl=queue_url)
        assert "Messages" in messages
        assert len(messages["Messages"]) == 1

        body = json.loads(messages["Messages"][0]["Body"])
        assert body["type"] == "lazy_loading"
        assert body["severity"] == "critical"
        assert body["title"] == "Lazy Loading Detected: 12 queries on Posts"


@mock_aws
async def test_sqs_output_json_includes_all_fields():
    session = get_session()
    async with session.create_client("sqs", region_name="us-east-1") as client:
        response = await client.create_queue(QueueName="test-queue")
        queue_url = response["QueueUrl"]

        output = SqsIssueOutput(queue_url=queue_url, region="us-east-1")

        await output.send(_issue())

        messages = await client.receive_message(QueueUrl=queue_url)
        body = json.loads(messages["Messages"][0]["Body"])

        assert body["category"] == "performance"
        assert body["data"] == {"entity": "Posts", "query_count": 12}
        assert body["suggestion"]["title"] == "Load Posts.author eagerly"
        assert body["queries"] == [
            {"sql": "SELECT * FROM posts WHERE id = 1", "execution_time_ms": 1.5}
        ]


@mock_aws
async def test_sqs_output_sets_message_attributes():
    session = get_session()
    async with session.create_client("sqs", region_name="us-east-1") as client:
        response = await client.create_queue(QueueName="test-queue")
        queue_url = response["QueueUrl"]

        output = SqsIssueOutput(queue_url=queue_url, region="us-east-1")

        await output.send(_issue(Severity.WARNING))

        messages = await client.receive_message(
            QueueUrl=queue_url, MessageAttributeNames=["All"]
        )
        attributes = messages["Messages"][0]["MessageAttributes"]

        assert attributes["severity"]["StringValue"] == "warning"
        assert attributes["type"]["StringValue"] == "lazy_loading"
