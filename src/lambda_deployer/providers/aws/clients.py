"""
AWS SDK client initialization.

Each target region gets its own session and clients; nothing is shared
between regions.

Usage:
    from lambda_deployer.providers.aws.clients import create_aws_clients

    clients = create_aws_clients("eu-central-1", profile="deploy")
    # clients["lambda"], clients["events"]
"""

from typing import Any, Dict, Optional

import boto3

from lambda_deployer import constants as CONSTANTS


def create_session(
    region: str,
    profile: Optional[str] = None,
    access_key: Optional[str] = None,
    secret_key: Optional[str] = None,
    session_token: Optional[str] = None
) -> boto3.Session:
    """
    Create a boto3 session for one region.

    A named profile wins over explicit keys; with neither, boto3's default
    credential chain is used.
    """
    if profile:
        return boto3.Session(profile_name=profile, region_name=region)

    config = {"region_name": region}
    if access_key and secret_key:
        config["aws_access_key_id"] = access_key
        config["aws_secret_access_key"] = secret_key
    if session_token:
        config["aws_session_token"] = session_token
    return boto3.Session(**config)


def create_aws_clients(
    region: str,
    profile: Optional[str] = None,
    access_key: Optional[str] = None,
    secret_key: Optional[str] = None,
    session_token: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create the boto3 clients needed to deploy to one region.

    Returns:
        Dictionary mapping service names to boto3 client instances.

    Client Keys:
        - lambda: Lambda functions, permissions and event source mappings
        - events: EventBridge rules and targets for scheduled events
    """
    session = create_session(region, profile, access_key, secret_key, session_token)
    return {
        "lambda": session.client("lambda", api_version=CONSTANTS.LAMBDA_API_VERSION),
        "events": session.client("events"),
    }
