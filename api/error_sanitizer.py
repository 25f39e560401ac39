"""
Error message sanitization for production environments.
"""
import re
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

class ErrorSanitizer:
    """Strips node addresses, session data and ledger identifiers from error text."""

    # Patterns that might reveal the node's location or a user's session
    SENSITIVE_PATTERNS = [
        (r'(https?://)[^\s/"\']+', r'\1[NODE]'),  # Node and proxy URLs
        (r'(?i)(cookie|session|token)=[^\s;,]+', r'\1=[REDACTED]'),  # Forwarded session cookies
        (r'[a-fA-F0-9]{64}', '[HASH]'),  # Block and transaction hashes
        (r'\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}(:\d+)?\b', '[IP_ADDRESS]'),  # Peer addresses
        (r'/home/[\w\-]+/', '/[USER_HOME]/'),
        (r'/Users/[\w\-]+/', '/[USER_HOME]/'),
    ]

    MAX_MESSAGE_LENGTH = 300

    @classmethod
    def sanitize_error_message(cls, message: str, is_production: bool = True) -> str:
        """
        Sanitize error message for safe display.

        Args:
            message: The error message to sanitize
            is_production: Whether we're in production mode

        Returns:
            Sanitized error message
        """
        if not is_production:
            return message

        if not message:
            return "An error occurred"

        sanitized = str(message)
        for pattern, replacement in cls.SENSITIVE_PATTERNS:
            sanitized = re.sub(pattern, replacement, sanitized)

        if 'Traceback' in sanitized:
            sanitized = sanitized.split('Traceback')[0].strip()

        if len(sanitized) > cls.MAX_MESSAGE_LENGTH:
            sanitized = sanitized[:cls.MAX_MESSAGE_LENGTH - 3] + "..."

        return sanitized

    @classmethod
    def create_safe_error_response(cls,
                                   error: Exception,
                                   status_code: int = 500,
                                   is_production: bool = True,
                                   context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Create a safe error response for API endpoints.

        Args:
            error: The exception that occurred
            status_code: HTTP status code
            is_production: Whether we're in production mode
            context: Additional context to include

        Returns:
            Safe error response dictionary
        """
        error_type = type(error).__name__

        error_messages = {
            'TransportError': 'Node is unreachable',
            'ProtocolError': 'Node rejected the request',
            'ParseError': 'Node returned malformed data',
            'TimeoutError': 'Request timed out',
            'ValueError': 'Invalid request data',
        }

        if is_production:
            message = error_messages.get(error_type, 'An internal error occurred')
        else:
            message = str(error)

        response = {
            'error': True,
            'message': message,
            'status_code': status_code
        }

        if not is_production:
            response['error_type'] = error_type

        if context:
            response['context'] = {
                key: cls.sanitize_error_message(str(value), is_production)
                for key, value in context.items()
            }

        return response

# Global instance for easy access
sanitizer = ErrorSanitizer()
