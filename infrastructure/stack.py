"""
AWS CDK Stacks: EC2 Auto Start/Stop Infrastructure

Deploys:
  IamRoleStack
    - IAM role assumed by Lambda, with basic execution logging and
      EC2 describe/start/stop permissions

  LambdaStack
    - Lambda function that starts tagged EC2 instances
    - Lambda function that stops tagged EC2 instances
    - EventBridge rule per function for scheduled execution
    - CloudWatch log group per function with retention
"""

from pathlib import Path

from aws_cdk import (
    Duration,
    RemovalPolicy,
    Stack,
    Tags,
    aws_events as events,
    aws_events_targets as targets,
    aws_iam as iam,
    aws_lambda as _lambda,
    aws_logs as logs,
)
from constructs import Construct

# Inline Lambda sources live in <repo>/lambda/
LAMBDA_DIR = Path(__file__).resolve().parent.parent / "lambda"

DEFAULT_TAG_KEY = "AutoStartStop"
DEFAULT_TAG_VALUE = "true"


class IamRoleStack(Stack):
    """Execution role shared by the start and stop functions."""

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # ── IAM Role for Lambda Execution ────────────────────────────
        self.lambda_role = iam.Role(
            self,
            "IamRoleLambda",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    "service-role/AWSLambdaBasicExecutionRole"
                ),
            ],
        )

        # EC2 instance control
        self.lambda_role.add_to_policy(
            iam.PolicyStatement(
                resources=["*"],
                actions=[
                    "ec2:DescribeInstances",
                    "ec2:StartInstances",
                    "ec2:StopInstances",
                ],
            )
        )


class LambdaStack(Stack):
    """Scheduled Lambda functions that start and stop EC2 instances."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        lambda_role: iam.IRole,
        cron_start_ec2: str,
        cron_stop_ec2: str,
        tag_key: str = DEFAULT_TAG_KEY,
        tag_value: str = DEFAULT_TAG_VALUE,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        environment = {
            "TARGET_TAG_KEY": tag_key,
            "TARGET_TAG_VALUE": tag_value,
        }

        # ================================================================
        # EC2 Auto Start
        # ================================================================
        self.start_function = self._scheduled_function(
            "AutoStart",
            source=LAMBDA_DIR / "lambda-ec2-start.py",
            schedule_expression=cron_start_ec2,
            role=lambda_role,
            environment=environment,
        )

        # ================================================================
        # EC2 Auto Stop
        # ================================================================
        self.stop_function = self._scheduled_function(
            "AutoStop",
            source=LAMBDA_DIR / "lambda-ec2-stop.py",
            schedule_expression=cron_stop_ec2,
            role=lambda_role,
            environment=environment,
        )

        # ── Tags ─────────────────────────────────────────────────────
        Tags.of(self).add("Project", "EC2AutoStartStop")
        Tags.of(self).add("Component", "Scheduler")
        Tags.of(self).add("ManagedBy", "CDK")

    def _scheduled_function(
        self,
        name: str,
        source: Path,
        schedule_expression: str,
        role: iam.IRole,
        environment: dict[str, str],
    ) -> _lambda.Function:
        """Declare a function, its log group and the rule that invokes it."""
        # ── CloudWatch Log Group ─────────────────────────────────────
        log_group = logs.LogGroup(
            self,
            f"LogGroup{name}",
            retention=logs.RetentionDays.ONE_MONTH,
            removal_policy=RemovalPolicy.DESTROY,
        )

        # ── Lambda Function (inline source, deployed as index.py) ────
        function = _lambda.Function(
            self,
            f"LambdaFunction{name}",
            code=_lambda.InlineCode(source.read_text(encoding="utf-8")),
            handler="index.main",
            timeout=Duration.seconds(300),
            runtime=_lambda.Runtime.PYTHON_3_12,
            role=role,
            environment=environment,
            log_group=log_group,
        )

        # ── EventBridge Schedule ─────────────────────────────────────
        rule = events.Rule(
            self,
            f"EventRule{name}",
            schedule=events.Schedule.expression(schedule_expression),
        )
        rule.add_target(targets.LambdaFunction(function))

        return function
