"""
CDK App Entry Point

Usage:
  cdk synth
  cdk deploy --all
  cdk deploy --all --context cron_start_ec2="cron(0 23 ? * SUN-THU *)"
  CDK_DEPLOY_ACCOUNT=111111111111 CDK_DEPLOY_REGION=ap-northeast-1 cdk deploy --all
"""

import os

import aws_cdk as cdk

from infrastructure.stack import (
    DEFAULT_TAG_KEY,
    DEFAULT_TAG_VALUE,
    IamRoleStack,
    LambdaStack,
)

DEFAULT_CRON_START = "cron(0 0 ? * MON-FRI *)"
DEFAULT_CRON_STOP = "cron(0 10 ? * MON-FRI *)"


def resolve_environment() -> cdk.Environment:
    """Deploy-time account/region, falling back to the CLI's defaults."""
    return cdk.Environment(
        account=os.environ.get("CDK_DEPLOY_ACCOUNT") or os.environ.get("CDK_DEFAULT_ACCOUNT"),
        region=os.environ.get("CDK_DEPLOY_REGION") or os.environ.get("CDK_DEFAULT_REGION"),
    )


def build_app(app: cdk.App) -> tuple[IamRoleStack, LambdaStack]:
    # Read context values (set in cdk.json or via --context CLI flag)
    cron_start = app.node.try_get_context("cron_start_ec2") or DEFAULT_CRON_START
    cron_stop = app.node.try_get_context("cron_stop_ec2") or DEFAULT_CRON_STOP
    tag_key = app.node.try_get_context("target_tag_key") or DEFAULT_TAG_KEY
    tag_value = app.node.try_get_context("target_tag_value") or DEFAULT_TAG_VALUE

    env = resolve_environment()

    iam_stack = IamRoleStack(
        app,
        "IamRoleStack",
        env=env,
        description="EC2 Auto Start/Stop - Lambda execution role",
    )

    lambda_stack = LambdaStack(
        app,
        "LambdaStack",
        lambda_role=iam_stack.lambda_role,
        cron_start_ec2=cron_start,
        cron_stop_ec2=cron_stop,
        tag_key=tag_key,
        tag_value=tag_value,
        env=env,
        description="EC2 Auto Start/Stop - scheduled Lambda functions",
    )

    return iam_stack, lambda_stack


def main() -> None:
    app = cdk.App()
    build_app(app)
    app.synth()


if __name__ == "__main__":
    main()
