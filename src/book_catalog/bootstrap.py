"""
Session bootstrap.

Turns the credentials read at startup into a ready session: derive the role,
connect, install the stored routines. Any failure releases what was opened
and propagates; there is no partially bootstrapped state.
"""

import logging

from pydantic import BaseModel, ConfigDict, Field

from .config import ClientConfig, get_config
from .database.gateway import CatalogSession, connect
from .roles import Role, derive_role

logger = logging.getLogger(__name__)


class Credentials(BaseModel):
    """What the caller supplies at startup."""

    model_config = ConfigDict(frozen=True)

    catalog: str = Field(..., min_length=1, description="Catalog (database) to administer")
    username: str = Field(..., min_length=1)
    password: str = Field(default="", repr=False)


class BootstrapResult(BaseModel):
    """A ready session and the role of the caller who opened it."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    session: CatalogSession
    role: Role


def bootstrap(credentials: Credentials, config: ClientConfig | None = None) -> BootstrapResult:
    """
    Open the shell's session.

    Raises:
        CatalogConnectionError: If the session cannot be established
        BootstrapError: If the stored routines cannot be installed
    """
    config = config or get_config()
    role = derive_role(credentials.username, config.admin_username)
    logger.info("Bootstrapping %s as %s (%s)", credentials.catalog, credentials.username, role.value)

    session = connect(credentials.catalog, credentials.username, credentials.password, config=config)
    try:
        session.install_routines()
    except Exception:
        session.close()
        raise

    return BootstrapResult(session=session, role=role)
