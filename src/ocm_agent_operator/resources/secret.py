"""Resource manager for the OCM Agent access token Secret."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..constants import (
    ACCESS_TOKEN_SECRET_KEY,
    PULL_SECRET_AUTH_TOKEN_KEY,
    PULL_SECRET_KEY,
    PULL_SECRET_NAME,
    PULL_SECRET_NAMESPACE,
)
from ..utils.errors import BuildError, NotFoundError
from ..utils.secrets import encode_secret_value, extract_registry_auth, get_secret_value
from .base import DiffResult, ResourceManager
from .models import OcmAgent, SecretObject

if TYPE_CHECKING:
    from ..reconciler.context import ReconcileContext


class SecretManager(ResourceManager[SecretObject]):
    """Copies the cluster's OCM access token into a Secret the agent mounts.

    The token is the ``cloud.openshift.com`` auth entry of the cluster pull
    secret, looked up every time the Secret is built.
    """

    object_type = SecretObject

    def object_name(self, agent: OcmAgent) -> str:
        return agent.spec.token_secret

    def build(self, ctx: "ReconcileContext", agent: OcmAgent) -> SecretObject:
        name = self.require(self.object_name(agent), "tokenSecret")
        access_token = self.fetch_access_token(ctx)
        return SecretObject(
            name=name,
            namespace=ctx.agent_namespace,
            type="Opaque",
            data={ACCESS_TOKEN_SECRET_KEY: encode_secret_value(access_token)},
        )

    def fetch_access_token(self, ctx: "ReconcileContext") -> str:
        try:
            pull_secret = ctx.store.get(ctx, SecretObject, PULL_SECRET_NAMESPACE, PULL_SECRET_NAME)
        except NotFoundError as e:
            raise BuildError(
                f"cluster pull secret {PULL_SECRET_NAMESPACE}/{PULL_SECRET_NAME} not found"
            ) from e
        docker_config = get_secret_value(pull_secret.data, PULL_SECRET_NAME, PULL_SECRET_KEY)
        return extract_registry_auth(docker_config, PULL_SECRET_AUTH_TOKEN_KEY)

    def diff(self, observed: SecretObject, desired: SecretObject) -> DiffResult[SecretObject]:
        if observed.data == desired.data:
            return DiffResult.unchanged()
        merged = observed.copy()
        merged.data = dict(desired.data)
        return DiffResult(changed=True, merged=merged)
