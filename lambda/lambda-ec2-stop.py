"""
Lambda Handler: EC2 Auto Stop

Stops running EC2 instances tagged TARGET_TAG_KEY=TARGET_TAG_VALUE.
Deployed inline as index.py (handler: index.main).
"""

import json
import logging
import os
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger()
logger.setLevel(logging.INFO)

for handler in logger.handlers:
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

BOTO_CONFIG = Config(
    retries={"max_attempts": 5, "mode": "adaptive"},
)


def find_instances(client: Any, tag_key: str, tag_value: str, state: str) -> list[str]:
    """Return ids of instances carrying the tag and in the given state."""
    paginator = client.get_paginator("describe_instances")
    filters = [
        {"Name": f"tag:{tag_key}", "Values": [tag_value]},
        {"Name": "instance-state-name", "Values": [state]},
    ]
    instance_ids: list[str] = []
    for page in paginator.paginate(Filters=filters):
        for reservation in page.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                instance_ids.append(instance["InstanceId"])
    return instance_ids


def main(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Lambda entry point.

    Args:
        event: EventBridge scheduled event (contents are not used).
        context: Lambda context object.

    Returns:
        Dict with the action taken and the affected instance ids.
    """
    logger.info("EC2 auto stop triggered")
    logger.info("Event: %s", json.dumps(event, default=str))

    tag_key = os.environ.get("TARGET_TAG_KEY", "AutoStartStop")
    tag_value = os.environ.get("TARGET_TAG_VALUE", "true")

    client = boto3.client("ec2", config=BOTO_CONFIG)
    instance_ids = find_instances(client, tag_key, tag_value, "running")

    if not instance_ids:
        logger.info("No running instances tagged %s=%s", tag_key, tag_value)
        return {"statusCode": 200, "action": "stop", "instance_ids": []}

    logger.info("Stopping %d instances: %s", len(instance_ids), ", ".join(instance_ids))
    try:
        client.stop_instances(InstanceIds=instance_ids)
    except ClientError:
        logger.exception("Failed to stop instances: %s", ", ".join(instance_ids))
        raise

    return {"statusCode": 200, "action": "stop", "instance_ids": instance_ids}
