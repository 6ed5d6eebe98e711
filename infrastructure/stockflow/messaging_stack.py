"""
Messaging Stack
===============
Event store stream → EventBridge Pipe → event bus → one rule per event name
→ one SQS queue per worker.

What lands in a worker queue is the EventBridge event whose `detail` is the
DynamoDB stream record, so workers read `detail.dynamodb.NewImage`.

Each queue has a paired Dead Letter Queue (DLQ). Workers report partial batch
failures, so only transient failures are redelivered; a message that keeps
failing transiently lands in the DLQ after maxReceiveCount attempts.

SQS visibility timeout > Lambda timeout:
  If Lambda takes up to 30s and crashes, the message must stay invisible
  longer than 30s so it isn't delivered to another consumer while the first
  is still processing. The timeout is 6x the Lambda timeout.
"""
import aws_cdk as cdk
from aws_cdk import aws_events as events
from aws_cdk import aws_events_targets as targets
from aws_cdk import aws_iam as iam
from aws_cdk import aws_pipes as pipes
from aws_cdk import aws_sqs as sqs
from constructs import Construct

EVENT_SOURCE = "stockflow.event-store"
EVENT_DETAIL_TYPE = "EventStoreChange"

# worker name → event name it consumes
WORKER_EVENTS = {
    "allocation": "ORDER_CREATED_EVENT",
    "deallocation": "ORDER_PAYMENT_REJECTED_EVENT",
    "completion": "ORDER_PAYMENT_ACCEPTED_EVENT",
}


class MessagingStack(cdk.Stack):
    def __init__(self, scope: Construct, id: str, *, tables, **kwargs):
        super().__init__(scope, id, **kwargs)

        self.queues: dict[str, sqs.Queue] = {}

        # ----------------------------------------------------------------
        # EventBridge custom bus, all domain events flow through here
        # ----------------------------------------------------------------
        self.event_bus = events.EventBus(
            self, "StockFlowEventBus",
            event_bus_name="stockflow-events",
        )
        cdk.CfnOutput(self, "EventBusName", value=self.event_bus.event_bus_name)

        # ----------------------------------------------------------------
        # Pipe: event store stream (inserts only) → bus
        # ----------------------------------------------------------------
        event_store = tables["event_store"]
        pipe_role = iam.Role(
            self, "EventStorePipeRole",
            assumed_by=iam.ServicePrincipal("pipes.amazonaws.com"),
        )
        event_store.grant_stream_read(pipe_role)
        self.event_bus.grant_put_events_to(pipe_role)

        pipes.CfnPipe(
            self, "EventStorePipe",
            name="stockflow-event-store-pipe",
            role_arn=pipe_role.role_arn,
            source=event_store.table_stream_arn,
            source_parameters=pipes.CfnPipe.PipeSourceParametersProperty(
                dynamo_db_stream_parameters=pipes.CfnPipe.PipeSourceDynamoDBStreamParametersProperty(
                    starting_position="LATEST",
                    batch_size=10,
                ),
                filter_criteria=pipes.CfnPipe.FilterCriteriaProperty(
                    filters=[pipes.CfnPipe.FilterProperty(pattern='{"eventName": ["INSERT"]}')],
                ),
            ),
            target=self.event_bus.event_bus_arn,
            target_parameters=pipes.CfnPipe.PipeTargetParametersProperty(
                event_bridge_event_bus_parameters=pipes.CfnPipe.PipeTargetEventBridgeEventBusParametersProperty(
                    source=EVENT_SOURCE,
                    detail_type=EVENT_DETAIL_TYPE,
                ),
            ),
        )

        # ----------------------------------------------------------------
        # Helper: create queue + DLQ pair
        # ----------------------------------------------------------------
        def make_queue(name: str, lambda_timeout_seconds: int = 30) -> sqs.Queue:
            dlq = sqs.Queue(
                self, f"{name.title()}Dlq",
                queue_name=f"stockflow-{name}-dlq",
                retention_period=cdk.Duration.days(14),
            )
            queue = sqs.Queue(
                self, f"{name.title()}Queue",
                queue_name=f"stockflow-{name}",
                visibility_timeout=cdk.Duration.seconds(lambda_timeout_seconds * 6),
                dead_letter_queue=sqs.DeadLetterQueue(
                    max_receive_count=3,   # retry 3 times before DLQ
                    queue=dlq,
                ),
            )
            self.queues[f"{name}-dlq"] = dlq
            return queue

        # ----------------------------------------------------------------
        # Per-worker queues, each fed by a rule on the stored eventName
        # ----------------------------------------------------------------
        for name, event_name in WORKER_EVENTS.items():
            queue = make_queue(name)
            self.queues[name] = queue
            events.Rule(
                self, f"{name.title()}Rule",
                rule_name=f"stockflow-{name}",
                event_bus=self.event_bus,
                event_pattern=events.EventPattern(
                    source=[EVENT_SOURCE],
                    detail={"dynamodb": {"NewImage": {"eventName": {"S": [event_name]}}}},
                ),
                targets=[targets.SqsQueue(queue)],
            )

        # Output queue URLs
        for name, queue in self.queues.items():
            if not name.endswith("-dlq"):
                cdk.CfnOutput(self, f"{name.title()}QueueUrl", value=queue.queue_url)
