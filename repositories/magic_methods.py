"""
Magic Methods - Maps dynamic finder/remover names to base repository methods

    find_by_email                -> find_by, field "email"
    find_one_by_email_or_get_new -> find_one_by_or_get_new, field "email"
"""

from dataclasses import dataclass
from typing import Tuple

from repositories.exceptions import UndefinedMethodError

# Order matters: the first prefix that matches wins
SUPPORTED_METHODS: Tuple[str, ...] = (
    'find_by',
    'find_one_by',
    'find_paginated_by',
    'remove_by',
    'remove_one_by',
    'count_by',
)

OR_GET_NEW_SUFFIX = '_or_get_new'


@dataclass(frozen=True)
class MagicMethod:
    """A resolved magic method call"""
    name: str
    base_method: str
    field: str


def get_supported_method(name: str) -> str:
    """
    Get the base method a magic method name starts with.

    Args:
        name: Called method name

    Returns:
        Base method name

    Raises:
        UndefinedMethodError: If no supported prefix matches
    """
    for supported_method in SUPPORTED_METHODS:
        if name.startswith(supported_method + '_'):
            return supported_method

    raise UndefinedMethodError(
        'Undefined method "{}". Method call must start with one of "{}"!'.format(
            name, '", "'.join(m + '_' for m in SUPPORTED_METHODS)
        )
    )


def resolve_magic_method(name: str) -> MagicMethod:
    """
    Resolve a called method name into a base method and a target field.

    Args:
        name: Called method name, e.g. "find_one_by_email_or_get_new"

    Returns:
        MagicMethod with the base method to dispatch to and the field name

    Raises:
        UndefinedMethodError: If the name does not start with a supported prefix
    """
    base_method = get_supported_method(name)
    field = name[len(base_method) + 1:]

    if base_method == 'find_one_by' and field.endswith(OR_GET_NEW_SUFFIX):
        return MagicMethod(
            name=name,
            base_method='find_one_by_or_get_new',
            field=field[:-len(OR_GET_NEW_SUFFIX)]
        )

    return MagicMethod(name=name, base_method=base_method, field=field)
