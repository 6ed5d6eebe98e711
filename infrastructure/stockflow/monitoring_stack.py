"""
Monitoring Stack
================
CloudWatch dashboard + alarms for the workers.

What an operator needs to see:
  1. Worker errors    unhandled crashes (the handler itself failed)
  2. Worker latency   P99 duration per worker
  3. Queue age        how long the oldest message has waited (backlog)
  4. DLQ depth        messages that kept failing transiently

Non-transient failures (invalid input, stale deallocation) are dropped by the
handlers and show up in the logs, not here.
"""
import aws_cdk as cdk
from aws_cdk import aws_cloudwatch as cw
from aws_cdk import aws_cloudwatch_actions as cw_actions
from aws_cdk import aws_sns as sns
from constructs import Construct


class MonitoringStack(cdk.Stack):
    def __init__(self, scope, id: str, *, lambdas, queues, **kwargs):
        super().__init__(scope, id, **kwargs)

        # SNS topic for alarm notifications
        alarm_topic = sns.Topic(self, "AlarmTopic", topic_name="stockflow-alarms")
        alarm_action = cw_actions.SnsAction(alarm_topic)

        # ----------------------------------------------------------------
        # Per-worker Lambda and queue metrics
        # ----------------------------------------------------------------
        worker_widgets = []
        for name, fn in lambdas.items():
            error_metric = fn.metric_errors(
                period=cdk.Duration.minutes(1),
                statistic="Sum",
            )
            duration_p99 = fn.metric_duration(
                period=cdk.Duration.minutes(5),
                statistic="p99",
            )
            oldest_message = queues[name].metric_approximate_age_of_oldest_message(
                period=cdk.Duration.minutes(1),
                statistic="Maximum",
            )

            # Alarm: >5 errors in 5 min
            cw.Alarm(
                self, f"{name.title()}ErrorAlarm",
                alarm_name=f"stockflow-{name}-errors",
                metric=error_metric,
                threshold=5,
                evaluation_periods=5,
                comparison_operator=cw.ComparisonOperator.GREATER_THAN_THRESHOLD,
                treat_missing_data=cw.TreatMissingData.NOT_BREACHING,
            ).add_alarm_action(alarm_action)

            # Alarm: a message has waited more than 15 min
            cw.Alarm(
                self, f"{name.title()}BacklogAlarm",
                alarm_name=f"stockflow-{name}-backlog",
                metric=oldest_message,
                threshold=900,
                evaluation_periods=3,
                comparison_operator=cw.ComparisonOperator.GREATER_THAN_THRESHOLD,
                treat_missing_data=cw.TreatMissingData.NOT_BREACHING,
            ).add_alarm_action(alarm_action)

            worker_widgets.append(
                cw.GraphWidget(
                    title=f"{name.title()} Worker",
                    left=[error_metric, oldest_message],
                    right=[duration_p99],
                    width=12,
                )
            )

        # ----------------------------------------------------------------
        # DLQ depth alarms (poison pill detection)
        # ----------------------------------------------------------------
        dlq_widgets = []
        for name, queue in queues.items():
            if not name.endswith("-dlq"):
                continue
            dlq_metric = queue.metric_approximate_number_of_messages_visible(
                period=cdk.Duration.minutes(1),
                statistic="Maximum",
            )
            cw.Alarm(
                self, f"{name.replace('-', '').title()}DepthAlarm",
                alarm_name=f"stockflow-{name}-depth",
                metric=dlq_metric,
                threshold=1,  # Any message in DLQ = alert
                evaluation_periods=1,
                comparison_operator=cw.ComparisonOperator.GREATER_THAN_OR_EQUAL_TO_THRESHOLD,
            ).add_alarm_action(alarm_action)

            dlq_widgets.append(
                cw.GraphWidget(
                    title=f"{name} Depth",
                    left=[dlq_metric],
                    width=8,
                )
            )

        # ----------------------------------------------------------------
        # CloudWatch Dashboard
        # ----------------------------------------------------------------
        dashboard = cw.Dashboard(self, "StockFlowDashboard", dashboard_name="StockFlow")
        dashboard.add_widgets(
            cw.TextWidget(
                markdown="# StockFlow: Warehouse Allocation Workers\n"
                         "Errors, backlog and DLQ depth for the allocation, deallocation and completion workers.",
                width=24,
            )
        )
        for row_widgets in [worker_widgets[i:i+2] for i in range(0, len(worker_widgets), 2)]:
            dashboard.add_widgets(*row_widgets)
        if dlq_widgets:
            dashboard.add_widgets(*dlq_widgets)
