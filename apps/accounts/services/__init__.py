"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserRegistrationError,
    DuplicateAccountError,
    InvalidCredentialsError,
    InactiveAccountError,
    InvalidTokenError,
    UserNotFoundError,
    InvalidSACPinError,
)
from .user_registration import register_user
from .user_authentication import authenticate_user
from .password_reset import request_password_reset, confirm_password_reset
from .sac_access import check_sac_pin, verify_sac_access
from .user_lookup import find_user_by_student_number, find_user_by_qr_code, search_users

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserRegistrationError',
    'DuplicateAccountError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    'InvalidTokenError',
    'UserNotFoundError',
    'InvalidSACPinError',
    # Services
    'register_user',
    'authenticate_user',
    'request_password_reset',
    'confirm_password_reset',
    'check_sac_pin',
    'verify_sac_access',
    'find_user_by_student_number',
    'find_user_by_qr_code',
    'search_users',
]
