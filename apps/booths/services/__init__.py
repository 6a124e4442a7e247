"""
Booths app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection.
"""

from .exceptions import (
    BoothsServiceError,
    BoothNotFoundError,
    InvalidPinError,
    DuplicatePinError,
    NotMemberError,
    LastManagerError,
    InsufficientPermissionsError,
    ProductNotFoundError,
    InvalidProductError,
    BoothRequestNotFoundError,
    BoothRequestAlreadyReviewedError,
)

from .booth_management import (
    generate_booth_pin,
    validate_pin,
    create_booth,
    get_booth_by_id,
    get_booths_for_user,
    list_booths,
    get_leaderboard,
    update_booth,
    delete_booth,
    regenerate_pin,
)

from .membership_management import (
    join_booth_by_pin,
    leave_booth,
    remove_member,
    get_booth_members,
)

from .product_management import (
    add_product,
    update_product,
    remove_product,
    get_booth_products,
)

from .booth_requests import (
    submit_booth_request,
    list_pending_booths,
    approve_booth_request,
    reject_booth_request,
)


__all__ = [
    # Exceptions
    'BoothsServiceError',
    'BoothNotFoundError',
    'InvalidPinError',
    'DuplicatePinError',
    'NotMemberError',
    'LastManagerError',
    'InsufficientPermissionsError',
    'ProductNotFoundError',
    'InvalidProductError',
    'BoothRequestNotFoundError',
    'BoothRequestAlreadyReviewedError',

    # Booth Management
    'generate_booth_pin',
    'validate_pin',
    'create_booth',
    'get_booth_by_id',
    'get_booths_for_user',
    'list_booths',
    'get_leaderboard',
    'update_booth',
    'delete_booth',
    'regenerate_pin',

    # Membership Management
    'join_booth_by_pin',
    'leave_booth',
    'remove_member',
    'get_booth_members',

    # Product Management
    'add_product',
    'update_product',
    'remove_product',
    'get_booth_products',

    # Teacher Requests
    'submit_booth_request',
    'list_pending_booths',
    'approve_booth_request',
    'reject_booth_request',
]
