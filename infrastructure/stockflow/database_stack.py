"""
Database Stack
==============
Both DynamoDB tables.

1. Warehouse table, single-table design. pk and sk both hold the item key:
     SKU#{sku}                                 SKU counter
     SKU#{sku}#ORDER_ID#{order_id}#ALLOCATION  order allocation record
2. Event store table, write-once domain events:
     pk ORDER_ID#{order_id} | SKU#{sku}, sk EVENT#{event_name}[#LOT_ID#{lot_id}]
   Its stream (NEW_IMAGE) is how events get published; see MessagingStack.

Pay-per-request billing and point-in-time recovery on both.
"""
import aws_cdk as cdk
from aws_cdk import aws_dynamodb as dynamodb
from constructs import Construct


class DatabaseStack(cdk.Stack):
    def __init__(self, scope: Construct, id: str, **kwargs):
        super().__init__(scope, id, **kwargs)

        self.tables: dict[str, dynamodb.Table] = {}

        # ----------------------------------------------------------------
        # Warehouse table (SKU counters + order allocations)
        # ----------------------------------------------------------------
        self.tables["warehouse"] = dynamodb.Table(
            self, "WarehouseTable",
            table_name="stockflow-warehouse",
            partition_key=dynamodb.Attribute(name="pk", type=dynamodb.AttributeType.STRING),
            sort_key=dynamodb.Attribute(name="sk", type=dynamodb.AttributeType.STRING),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery=True,
            removal_policy=cdk.RemovalPolicy.DESTROY,  # use RETAIN in production
        )

        # ----------------------------------------------------------------
        # Event store table (stream feeds the event bus)
        # ----------------------------------------------------------------
        self.tables["event_store"] = dynamodb.Table(
            self, "EventStoreTable",
            table_name="stockflow-event-store",
            partition_key=dynamodb.Attribute(name="pk", type=dynamodb.AttributeType.STRING),
            sort_key=dynamodb.Attribute(name="sk", type=dynamodb.AttributeType.STRING),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery=True,
            stream=dynamodb.StreamViewType.NEW_IMAGE,
            removal_policy=cdk.RemovalPolicy.DESTROY,
        )

        # Output table names for cross-stack references
        for name, table in self.tables.items():
            cdk.CfnOutput(self, f"{name.title().replace('_', '')}TableName", value=table.table_name)
