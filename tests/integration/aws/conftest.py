import json

import boto3
import pytest
from moto import mock_aws

REGION = "eu-central-1"

ASSUME_ROLE_POLICY = {
    "Version": "2012-10-17",
    "Statement": [{
        "Effect": "Allow",
        "Principal": {"Service": "lambda.amazonaws.com"},
        "Action": "sts:AssumeRole",
    }],
}


@pytest.fixture(scope="function")
def aws_mock():
    """Run the test against moto's in-memory AWS."""
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def lambda_role(aws_mock):
    """Execution role the functions are created with."""
    iam = boto3.client("iam", region_name=REGION)
    response = iam.create_role(
        RoleName="lambda-deployer-test-role",
        AssumeRolePolicyDocument=json.dumps(ASSUME_ROLE_POLICY),
    )
    return response["Role"]["Arn"]


@pytest.fixture(scope="function")
def deploy_zip(tmp_path):
    """A real zip payload on disk, reused by deploy_zipfile."""
    from lambda_deployer.packaging.archive import zip_directory

    source = tmp_path / "src"
    source.mkdir()
    (source / "lambda_function.py").write_text("def lambda_handler(event, context):\n    return event\n")
    path = tmp_path / "function.zip"
    path.write_bytes(zip_directory(source))
    return path
