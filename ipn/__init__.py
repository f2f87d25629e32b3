"""Inbound payment notification (IPN) handling."""

from ipn.exceptions import AuthenticationError, NotificationError, ResolutionError
from ipn.types import Notification, NotificationHeaders, ProcessorCredentials
from ipn.replay_guard import ReplayGuard
from ipn.security_logger import SecurityEvent, SecurityLogger
from ipn.verifier import NotificationVerifier, VerificationFailure, VerificationResult
from ipn.service import NotificationService
