"""Authentication resolution for remote connections."""

from remoteop.auth.agent import AgentConnection, connect_agent, find_agent_identity
from remoteop.auth.keys import load_private_key, prompt_passphrase
from remoteop.auth.methods import AgentAuth, AuthMethod, KeyAuth, PasswordAuth
from remoteop.auth.resolver import PrivateKeyResolver, resolve_auth

__all__ = [
    "AgentAuth",
    "AgentConnection",
    "AuthMethod",
    "KeyAuth",
    "PasswordAuth",
    "PrivateKeyResolver",
    "connect_agent",
    "find_agent_identity",
    "load_private_key",
    "prompt_passphrase",
    "resolve_auth",
]
