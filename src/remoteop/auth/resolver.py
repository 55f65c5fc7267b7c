"""Credential to AuthMethod resolution."""

import logging
from typing import Callable, Optional

import paramiko

from remoteop.auth.agent import PUBLIC_KEY_SUFFIX, AgentConnection, connect_agent, find_agent_identity
from remoteop.auth.keys import load_private_key, prompt_passphrase, read_key_file
from remoteop.auth.methods import AgentAuth, AuthMethod, KeyAuth, PasswordAuth
from remoteop.errors import KeyParseError
from remoteop.models import AgentCredential, Credential, PasswordCredential, PrivateKeyCredential

logger = logging.getLogger(__name__)

PromptFn = Callable[[str], str]
AgentConnector = Callable[[], AgentConnection]


class PrivateKeyResolver:
    """Turns a private key file into an AuthMethod.

    Resolution runs three steps and stops at the first that yields a method:

    1. parse the key without a passphrase;
    2. if it is encrypted, look for its public half in the SSH agent;
    3. otherwise parse it with the credential's passphrase, prompting once
       when none was given.
    """

    def __init__(
        self,
        prompt: PromptFn = prompt_passphrase,
        agent_connector: AgentConnector = connect_agent,
    ):
        self.prompt = prompt
        self.agent_connector = agent_connector

    def resolve(self, credential: PrivateKeyCredential) -> AuthMethod:
        data = read_key_file(credential.path)

        for step in (self._without_passphrase, self._from_agent):
            method = step(credential, data)
            if method is not None:
                return method
        return self._with_passphrase(credential, data)

    def _without_passphrase(
        self, credential: PrivateKeyCredential, data: bytes
    ) -> Optional[AuthMethod]:
        try:
            key = load_private_key(data)
        except paramiko.PasswordRequiredException:
            logger.debug("Private key %s is passphrase protected", credential.path)
            return None
        except paramiko.SSHException as e:
            raise KeyParseError(f"unable to parse private key: {credential.path}: {e}") from e
        logger.debug("Loaded unencrypted %s key from %s", key.get_name(), credential.path)
        return KeyAuth(key)

    def _from_agent(
        self, credential: PrivateKeyCredential, data: bytes
    ) -> Optional[AuthMethod]:
        return find_agent_identity(
            credential.path + PUBLIC_KEY_SUFFIX,
            agent_connector=self.agent_connector,
        )

    def _with_passphrase(self, credential: PrivateKeyCredential, data: bytes) -> AuthMethod:
        passphrase = credential.passphrase
        if passphrase is None:
            passphrase = self.prompt(credential.path)
        try:
            key = load_private_key(data, passphrase=passphrase)
        except paramiko.SSHException as e:
            raise KeyParseError(
                f"parse private key with passphrase failed: {credential.path}: {e}"
            ) from e
        logger.debug("Decrypted %s key from %s", key.get_name(), credential.path)
        return KeyAuth(key)


def resolve_auth(
    credential: Credential,
    prompt: PromptFn = prompt_passphrase,
    agent_connector: AgentConnector = connect_agent,
) -> AuthMethod:
    """Resolve a credential into an AuthMethod.

    Args:
        credential: The selected credential.
        prompt: Passphrase prompt for encrypted keys.
        agent_connector: Callable opening the SSH agent connection.

    Returns:
        The resolved method. Callers must ``close()`` it once the connection
        attempt is over.

    Raises:
        FileAccessError: If a private key cannot be read.
        KeyParseError: If a private key cannot be parsed or decrypted.
        AgentUnavailableError: If agent authentication was requested and the
            agent is unreachable.
    """
    if isinstance(credential, PasswordCredential):
        return PasswordAuth(credential.password)
    if isinstance(credential, PrivateKeyCredential):
        return PrivateKeyResolver(prompt=prompt, agent_connector=agent_connector).resolve(credential)
    if isinstance(credential, AgentCredential):
        return AgentAuth(agent_connector())
    raise TypeError(f"Unsupported credential type: {type(credential).__name__}")
