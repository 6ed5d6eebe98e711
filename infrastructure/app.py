#!/usr/bin/env python3
"""
StockFlow CDK App
=================
Infrastructure as Code using AWS CDK (Python).

Stack dependency order:
  DatabaseStack → MessagingStack → WorkerStack → MonitoringStack

Run: cdk deploy --all
Synth without Docker: cdk synth -c bundle=false
"""
import aws_cdk as cdk

from stockflow.database_stack import DatabaseStack
from stockflow.messaging_stack import MessagingStack
from stockflow.monitoring_stack import MonitoringStack
from stockflow.worker_stack import WorkerStack


def build_app(app: cdk.App) -> cdk.App:
    env = cdk.Environment(
        account=app.node.try_get_context("account"),
        region=app.node.try_get_context("region") or "us-east-1",
    )

    db_stack = DatabaseStack(app, "StockFlowDatabase", env=env)
    messaging_stack = MessagingStack(app, "StockFlowMessaging", tables=db_stack.tables, env=env)
    worker_stack = WorkerStack(
        app, "StockFlowWorkers",
        tables=db_stack.tables,
        queues=messaging_stack.queues,
        env=env,
    )
    MonitoringStack(
        app, "StockFlowMonitoring",
        lambdas=worker_stack.lambdas,
        queues=messaging_stack.queues,
        env=env,
    )
    return app


if __name__ == "__main__":
    build_app(cdk.App()).synth()
