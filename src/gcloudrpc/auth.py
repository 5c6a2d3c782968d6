"""Credential resolution for gRPC channels."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

import google.auth
import google.auth.transport.grpc
import google.auth.transport.requests
import grpc
from google.auth.credentials import Credentials
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account

from gcloudrpc.exceptions import AuthError

logger = logging.getLogger(__name__)


class AuthClient(Protocol):
    """Protocol for objects providing the application credential."""

    def get_credentials(self) -> Credentials:
        """Return google-auth credentials, raising GoogleAuthError on failure."""
        ...


class DefaultAuthClient:
    """Resolves Application Default Credentials or a service account key file.

    Credentials are resolved on first use and then reused.
    """

    def __init__(
        self,
        scopes: Sequence[str] = (),
        *,
        key_filename: str | None = None,
        credentials: Credentials | None = None,
    ) -> None:
        self.scopes = list(scopes)
        self.key_filename = key_filename
        self._credentials = credentials
        self._project_id: str | None = None

    @property
    def project_id(self) -> str | None:
        return self._project_id

    def get_credentials(self) -> Credentials:
        if self._credentials is not None:
            return self._credentials

        if self.key_filename:
            credentials = service_account.Credentials.from_service_account_file(
                self.key_filename, scopes=self.scopes or None
            )
            self._project_id = credentials.project_id
        else:
            credentials, self._project_id = google.auth.default(
                scopes=self.scopes or None
            )
        self._credentials = credentials
        return credentials


def get_grpc_credentials(auth_client: AuthClient) -> grpc.ChannelCredentials:
    """Combines TLS channel credentials with the application's bearer token.

    The token is exchanged here, so a credential that cannot be refreshed
    fails before any channel is opened.

    Raises:
        AuthError: If the application credential cannot be obtained or its
            token cannot be exchanged.
    """
    request = google.auth.transport.requests.Request()
    try:
        credentials = auth_client.get_credentials()
        if not credentials.valid:
            credentials.refresh(request)
    except AuthError:
        raise
    except (GoogleAuthError, OSError) as e:
        raise AuthError(f"Failed to obtain credentials: {e}") from e

    plugin = google.auth.transport.grpc.AuthMetadataPlugin(credentials, request)
    logger.debug("Resolved gRPC credentials from %s", type(credentials).__name__)
    return grpc.composite_channel_credentials(
        grpc.ssl_channel_credentials(),
        grpc.metadata_call_credentials(plugin),
    )

