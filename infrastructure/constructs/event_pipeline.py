"""
Event pipeline: EventBridge schedule -> Lambda for the nightly risk recompute.
"""

from typing import Dict

from aws_cdk import (
    Duration,
    aws_ec2 as ec2,
    aws_events as events,
    aws_events_targets as targets,
    aws_lambda as _lambda,
    aws_logs as logs,
)
from constructs import Construct


class EventPipelineConstruct(Construct):
    """Run the full-population risk recompute on a schedule."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        code: _lambda.Code,
        vpc: ec2.IVpc,
        shared_env: Dict[str, str],
        schedule_expression: str,
        timeout_seconds: int = 300,
    ) -> None:
        super().__init__(scope, construct_id)

        # Batch job with its own timeout; API requests stay on the short one.
        self.recompute_lambda = _lambda.Function(
            self,
            "RiskRecomputeHandler",
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler="handlers.risk_scoring.lambda_handler",
            code=code,
            timeout=Duration.seconds(timeout_seconds),
            memory_size=1024,
            architecture=_lambda.Architecture.X86_64,
            vpc=vpc,
            environment=dict(shared_env),
            log_retention=logs.RetentionDays.ONE_WEEK,
        )

        self.rule = events.Rule(
            self,
            "NightlyRiskRecompute",
            description=f"Full customer risk recompute ({environment})",
            schedule=events.Schedule.expression(schedule_expression),
            targets=[targets.LambdaFunction(self.recompute_lambda, retry_attempts=1)],
        )
