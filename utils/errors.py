"""
Error handling utilities for the Gestão COP app.
"""


class GestaoError(Exception):
    """Base exception for the application"""
    pass


class SupabaseError(GestaoError):
    """Raised when a Supabase REST call fails"""

    def __init__(self, message, status_code=None, body=""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthError(GestaoError):
    """Raised when a Supabase Auth operation fails"""
    pass


class ImportValidationError(GestaoError):
    """Raised when an uploaded file cannot be imported at all"""
    pass


class HeaderNotFoundError(ImportValidationError):
    """Raised when the hours-bank header row cannot be located"""
    pass


class AIUnavailableError(GestaoError):
    """Raised when the AI key is missing or the API call fails"""
    pass


class AIResponseError(GestaoError):
    """Raised when the AI reply holds no parseable JSON"""
    pass


class ConnectionFailedError(SupabaseError):
    """Raised when Supabase cannot be reached (network error or timeout)"""
    pass
