import os
import boto3

from botocore.config import Config


def main_boto_region():
    return os.environ.get('DEFAULT_REGION', os.environ.get('AWS_DEFAULT_REGION', 'eu-central-1'))


def aws_config_ddb():
    # DynamoDB has cross region resources for optimisation for calls from various regions.
    return Config(retries={'max_attempts': 3}, region_name=os.environ.get('AWS_REGION', main_boto_region()))


# Clients are created on demand: Lambda reuses the module between invocations
# and tests patch AWS after import.
def sns_client():
    # Simple Notification Service Client.
    return boto3.client('sns', region_name=main_boto_region())


def cognito_client():
    return boto3.client('cognito-idp', region_name=main_boto_region())
