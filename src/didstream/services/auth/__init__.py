"""Slow-path authentication: challenge signing, session state and the authenticator."""
from .challenge import ChallengeSigner, sign_assertion
from .session import Session, SessionState
from .slow_path import AuthAttempt, RegistrationResult, SlowPathAuthenticator

__all__ = [
    "ChallengeSigner",
    "sign_assertion",
    "Session",
    "SessionState",
    "AuthAttempt",
    "RegistrationResult",
    "SlowPathAuthenticator",
]
