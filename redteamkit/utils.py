"""Small helpers shared by the technique runner and the providers."""

from __future__ import annotations

import base64
import hashlib
import os
import random
import uuid
from typing import Optional

__all__ = [
    "ATTACKER_EMAIL_ENV_VAR",
    "DEFAULT_ATTACKER_EMAIL",
    "USER_AGENT_PREFIX",
    "coalesce_error",
    "random_string",
    "random_hex_string",
    "md5_hash_base64",
    "sha256_hash",
    "file_exists",
    "is_error_due_to_ebs_encryption_by_default",
    "attacker_principal",
    "user_agent_for",
]

ATTACKER_EMAIL_ENV_VAR = "STRATUS_RED_TEAM_ATTACKER_EMAIL"
DEFAULT_ATTACKER_EMAIL = "attacker@example.com"
USER_AGENT_PREFIX = "stratus-red-team"

_ALPHANUMERIC = "abcdefghijklmnopqrstuvwxyz0123456789"
_HEX = "abcdef0123456789"


def coalesce_error(*args: Optional[BaseException]) -> Optional[BaseException]:
    """Return the first error that is not None, or None."""
    return next((error for error in args if error is not None), None)


def random_string(length: int) -> str:
    """Return a random string of lower-case letters and digits."""
    return "".join(random.choices(_ALPHANUMERIC, k=length))


def random_hex_string(length: int) -> str:
    """Return a random string of lower-case hexadecimal digits."""
    return "".join(random.choices(_HEX, k=length))


def md5_hash_base64(text: str) -> str:
    """Return the base64-encoded MD5 digest of the UTF-8 text."""
    return base64.b64encode(hashlib.md5(text.encode()).digest()).decode("ascii")


def sha256_hash(text: str) -> str:
    """Return the hex-encoded SHA-256 digest of the UTF-8 text."""
    return hashlib.sha256(text.encode()).hexdigest()


def file_exists(path: str | os.PathLike[str]) -> bool:
    """Return whether the path exists; any error counts as not existing."""
    try:
        os.stat(path)
    except (OSError, ValueError):
        return False
    return True


def is_error_due_to_ebs_encryption_by_default(error: Optional[BaseException | str]) -> bool:
    """Return whether a sharing error was caused by EBS default-key encryption."""
    if error is None:
        return False
    message = str(error).lower()

    # EBS snapshots encrypted with the default key cannot be shared
    if "operationnotpermitted" in message and "ebs default key" in message:
        return True

    # AMIs backed by snapshots encrypted with the AWS managed CMK cannot be shared
    if "invalidparameter" in message and "snapshots encrypted with the aws managed cmk" in message:
        return True

    return False


def attacker_principal() -> str:
    """Return the GCP principal of the simulated attacker."""
    attacker_email = os.environ.get(ATTACKER_EMAIL_ENV_VAR, "")
    if attacker_email:
        return "user:" + attacker_email.lower()
    return "user:" + DEFAULT_ATTACKER_EMAIL


def user_agent_for(correlation_id: uuid.UUID | str) -> str:
    """Return the user agent that tags requests of one execution."""
    return f"{USER_AGENT_PREFIX}_{correlation_id}"