import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from . import config
from .errors import CredentialError

logger = logging.getLogger(__name__)

# Retries for CloudWatch calls are handled by directory.call_with_retry
CLOUDWATCH_CLIENT_CONFIG = Config(retries={"total_max_attempts": 1, "mode": "standard"})
# A failed role assumption skips the account; it is never retried
STS_CLIENT_CONFIG = Config(retries={"total_max_attempts": 1, "mode": "standard"})


def session_client(service: str, **kwargs):
    """
    Client built from its own Session. The default boto3 session is not
    thread-safe, and clients are created from scan worker threads.
    """
    return boto3.session.Session().client(service, **kwargs)


class CredentialBroker:
    """
    Exchanges an account id for a CloudWatch client in that account, by
    assuming the cross-account sharing role. Every call requests a new
    session; nothing is cached between calls.
    """

    def __init__(self, role_name: Optional[str] = None, sts_client=None, session_name: str = "cloudwatch_toolkit_reader",
                 client_builder=None):
        self.role_name = role_name or config.ROLE_NAME
        self.session_name = session_name
        self.sts = sts_client or session_client("sts", config=STS_CLIENT_CONFIG)
        self._client_builder = client_builder or session_client

    def role_arn(self, account_id: str) -> str:
        return f"arn:aws:iam::{account_id}:role/{self.role_name}"

    def assume(self, account_id: str) -> dict:
        try:
            role = self.sts.assume_role(RoleArn=self.role_arn(account_id), RoleSessionName=self.session_name)
        except ClientError as e:
            raise CredentialError(account_id, self.role_name, e.response.get("Error", {}).get("Code", str(e))) from e
        except BotoCoreError as e:
            raise CredentialError(account_id, self.role_name, str(e)) from e
        return role["Credentials"]

    def client(self, account_id: str, region: str):
        creds = self.assume(account_id)
        return self._client_builder(
            "cloudwatch",
            region_name=region,
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
            config=CLOUDWATCH_CLIENT_CONFIG,
        )

    __call__ = client
