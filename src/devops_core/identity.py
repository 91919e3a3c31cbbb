"""Identity gate: validate backend credentials before any work item access."""
import logging

from . import errors
from .client import WorkItemClient
from .models import Credentials, Identity

logger = logging.getLogger("devops-core.identity")


def ensure_complete(credentials: Credentials) -> None:
    """Reject structurally incomplete credentials without touching the network."""
    if not credentials.is_complete:
        logger.error("Azure DevOps credentials are incomplete (token or organization URL missing)")
        raise errors.CredentialsIncompleteError()


async def validate_identity(credentials: Credentials, client: WorkItemClient) -> Identity:
    """Validate the credential and return the identity behind it.

    Args:
        credentials: PAT and organization URL for this operation
        client: Client bound to the same credentials

    Returns:
        The authenticated identity

    Raises:
        AuthError: incomplete credentials, or the backend answered 401/403.
            A 404 or other failure from the profile endpoint is reported as
            an invalid credential too, since nothing else can be trusted.
    """
    ensure_complete(credentials)

    try:
        identity = await client.fetch_identity()
    except errors.AuthError as e:
        logger.error(f"Identity validation failed: {e.reason.value}")
        raise
    except errors.RemoteError as e:
        logger.error(f"Identity validation failed with status {e.status}")
        raise errors.AuthError(
            errors.AuthFailure.INVALID,
            f"Azure DevOps identity validation failed: {e.status}",
        ) from e

    logger.info(f"Identity validated: {identity.display_name}")
    return identity
