"""CDK infrastructure for scheduled EC2 start/stop."""
