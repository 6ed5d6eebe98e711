"""
Worker Stack
============
The three SQS-triggered worker Lambdas.

Lambda configuration highlights:
- One code asset: the whole services/ directory, so every handler can import
  `shared` (handler strings are module paths from that root)
- X-Ray active tracing enabled on all functions
- SQS event sources report partial batch failures
- Third-party packages (pydantic, aws-xray-sdk) are pip-installed into the
  asset at synth time unless the `bundle` context flag is "false"
"""
from pathlib import Path

import aws_cdk as cdk
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_lambda_event_sources as event_sources
from aws_cdk import aws_logs as logs
from constructs import Construct

LAMBDA_RUNTIME = _lambda.Runtime.PYTHON_3_11
SERVICES_DIR = Path(__file__).resolve().parents[2] / "services"

# worker name → (handler, writes the event store)
WORKERS = {
    "allocation": ("allocation_service.handler.handler", True),
    "deallocation": ("deallocation_service.handler.handler", False),
    "completion": ("completion_service.handler.handler", False),
}


class WorkerStack(cdk.Stack):
    def __init__(self, scope: Construct, id: str, *, tables, queues, **kwargs):
        super().__init__(scope, id, **kwargs)

        self.lambdas: dict[str, _lambda.Function] = {}

        code = _lambda.Code.from_asset(str(SERVICES_DIR), bundling=self._bundling())

        # ----------------------------------------------------------------
        # Common environment variables
        # ----------------------------------------------------------------
        common_env = {
            "WAREHOUSE_TABLE": tables["warehouse"].table_name,
            "EVENT_STORE_TABLE": tables["event_store"].table_name,
            "LOG_LEVEL": "INFO",
        }

        for name, (handler, raises_events) in WORKERS.items():
            fn = _lambda.Function(
                self, f"{name.title()}Function",
                function_name=f"stockflow-{name}-worker",
                runtime=LAMBDA_RUNTIME,
                handler=handler,
                code=code,
                environment={**common_env, "SERVICE_NAME": f"{name}-worker"},
                tracing=_lambda.Tracing.ACTIVE,
                log_retention=logs.RetentionDays.ONE_WEEK,
                timeout=cdk.Duration.seconds(30),
                memory_size=256,
            )
            self.lambdas[name] = fn

            tables["warehouse"].grant_read_write_data(fn)
            if raises_events:
                tables["event_store"].grant_write_data(fn)

            # SQS event source mapping with partial batch failure reporting
            fn.add_event_source(
                event_sources.SqsEventSource(
                    queues[name],
                    batch_size=10,
                    report_batch_item_failures=True,  # Only retry failed messages
                )
            )

    def _bundling(self):
        if str(self.node.try_get_context("bundle")).lower() == "false":
            return None
        return cdk.BundlingOptions(
            image=LAMBDA_RUNTIME.bundling_image,
            command=[
                "bash", "-c",
                "pip install --no-cache-dir pydantic aws-xray-sdk -t /asset-output "
                "&& cp -au . /asset-output",
            ],
        )
