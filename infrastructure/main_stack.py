"""
Main CDK Stack for the Complaint Intelligence platform.
"""

from aws_cdk import (
    Stack,
    Tags,
    CfnOutput,
)
from constructs import Construct

from infrastructure.constructs.data_layer import DataLayerConstruct
from infrastructure.constructs.api_layer import ApiLayerConstruct
from infrastructure.constructs.event_pipeline import EventPipelineConstruct
from infrastructure.config.settings import Settings


class ComplaintIntelligenceStack(Stack):
    """Main stack wiring all constructs together."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        settings: Settings,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Global tags for cost/accounting.
        Tags.of(self).add("Project", "complaint-intelligence")
        Tags.of(self).add("Environment", settings.environment)
        Tags.of(self).add("CostCenter", "customer-retention")
        Tags.of(self).add("ManagedBy", "cdk")

        # 1) Data layer + shared VPC.
        data_construct = DataLayerConstruct(
            self,
            "DataLayer",
            environment=settings.environment,
            db_instance_class=settings.db_instance_class,
            db_allocated_storage=settings.db_allocated_storage,
        )

        shared_env = settings.lambda_environment()
        shared_env["DB_SECRET_ARN"] = data_construct.db_secret.secret_arn
        shared_env["SNAPSHOT_BUCKET"] = data_construct.snapshot_bucket.bucket_name

        # 2) API layer (single Lambda).
        api_construct = ApiLayerConstruct(
            self,
            "ApiLayer",
            environment=settings.environment,
            vpc=data_construct.vpc,
            shared_env=shared_env,
            lambda_memory_mb=settings.lambda_memory_mb,
            lambda_timeout_seconds=settings.lambda_timeout_seconds,
        )

        # 3) Scheduled recompute reusing the API bundle.
        event_construct = EventPipelineConstruct(
            self,
            "EventPipeline",
            environment=settings.environment,
            code=api_construct.bundled_code,
            vpc=data_construct.vpc,
            shared_env=shared_env,
            schedule_expression=settings.recompute_schedule,
            timeout_seconds=settings.recompute_timeout_seconds,
        )

        # Permissions.
        for fn in (api_construct.main_lambda, event_construct.recompute_lambda):
            data_construct.db_secret.grant_read(fn)
            data_construct.snapshot_bucket.grant_read_write(fn)

        # Outputs to quickly find resources.
        CfnOutput(self, "ApiEndpoint", value=api_construct.api.api_endpoint)
        CfnOutput(self, "SnapshotBucket", value=data_construct.snapshot_bucket.bucket_name)
        CfnOutput(self, "DbSecretArn", value=data_construct.db_secret.secret_arn)
        CfnOutput(self, "RecomputeFunction", value=event_construct.recompute_lambda.function_name)
