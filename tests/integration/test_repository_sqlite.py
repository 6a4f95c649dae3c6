"""
Integration tests for BaseRepository against an in-memory SQLite database
"""

import pytest

from repositories.base_repository import BaseRepository, SortOrder
from repositories.exceptions import NoResultsError
from tests.fixtures.models import Customer, Order


@pytest.fixture
def repository(db_session):
    return BaseRepository(db_session, Customer)


@pytest.fixture
def customers(repository):
    customers = [
        Customer(name='Ann', email='ann@example.com', status='active'),
        Customer(name='Bob', email='bob@example.com', status='active'),
        Customer(name='Cid', email=None, status='archived'),
        Customer(name='Dee', email='dee@example.com', status='pending'),
    ]
    repository.add(customers, flush=True)
    return customers


def test_add_and_find(repository, customers):
    ann = customers[0]

    assert ann.id is not None
    assert repository.find(ann.id) is ann
    assert repository.count_all() == 4


def test_find_by_criteria(repository, customers):
    active = repository.find_by({'status': 'active'}, order_by={'name': SortOrder.DESC})

    assert [c.name for c in active] == ['Bob', 'Ann']


def test_find_by_in_and_null(repository, customers):
    assert {c.name for c in repository.find_by({'status': ['archived', 'pending']})} == {'Cid', 'Dee'}
    assert [c.name for c in repository.find_by({'email': None})] == ['Cid']


def test_find_by_limit_offset(repository, customers):
    result = repository.find_by({}, order_by={'name': 'asc'}, limit=2, offset=1)

    assert [c.name for c in result] == ['Bob', 'Cid']


def test_magic_finders(repository, customers):
    assert repository.find_one_by_email('bob@example.com') is customers[1]
    assert [c.name for c in repository.find_by_status('active', {'name': 'asc'})] == ['Ann', 'Bob']
    assert repository.count_by_status('active') == 2


def test_magic_find_one_by_or_get_new(repository, customers):
    existing = repository.find_one_by_email_or_get_new('ann@example.com')
    new = repository.find_one_by_email_or_get_new('zed@example.com')

    assert existing is customers[0]
    assert new.id is None
    assert new not in repository.session


def test_magic_find_by_association(db_session, repository, customers):
    orders = BaseRepository(db_session, Order)
    order = Order(reference='A-1', customer=customers[0])
    orders.add(order, flush=True)

    assert orders.find_one_by_customer(customers[0]) is order
    assert orders.count_by_customer_id(customers[0].id) == 1


def test_paginated(repository, customers):
    paginator = repository.find_paginated_by_status(['active', 'pending'], {'name': 'asc'}, 2)

    assert paginator.total_items == 3
    assert paginator.page_count == 2
    assert [c.name for c in paginator.get_page(1).items] == ['Ann', 'Bob']
    assert [c.name for c in paginator.get_page(2).items] == ['Dee']


def test_paginated_query(repository, customers):
    query = repository.session.query(Customer).filter(Customer.name != 'Ann')

    paginator = repository.find_paginated_by(query, {'name': 'desc'}, items_per_page=10)

    assert [c.name for c in paginator] == ['Dee', 'Cid', 'Bob']


def test_paginated_or_fail(repository, customers):
    with pytest.raises(NoResultsError):
        repository.find_paginated_by_or_fail({'status': 'deleted'})


def test_remove_by_magic(repository, customers):
    repository.remove_by_status('active', flush=True)

    assert repository.count_all() == 2
    assert repository.find_by_status('active') == []


def test_remove_one_by(repository, customers):
    repository.remove_one_by({'status': 'active'}, flush=True)

    assert repository.count_by({'status': 'active'}) == 1


def test_remove_by_identifier(repository, customers):
    repository.remove(customers[3].id, flush=True)

    assert repository.find_one_by({'name': 'Dee'}) is None


def test_remove_all_with_auto_flush(repository, customers):
    repository.auto_flush = True

    repository.remove_all()

    assert repository.count_all() == 0


def test_refresh_discards_changes(repository, customers):
    ann = customers[0]
    ann.name = 'Changed'

    repository.refresh(ann)

    assert ann.name == 'Ann'


def test_detach(repository, customers):
    ann = customers[0]

    repository.detach(ann)

    assert ann not in repository.session
    assert repository.count_all() == 4


def test_add_refresh_detach_tuple(repository, customers):
    eve, fay = Customer(name='Eve'), Customer(name='Fay')

    repository.add((eve, fay), flush=True)
    eve.name = 'Changed'
    repository.refresh((eve, fay))
    repository.detach((eve, fay))

    assert eve.name == 'Eve'
    assert eve not in repository.session
    assert fay not in repository.session
    assert repository.count_all() == 6


@pytest.fixture
def orders(db_session, customers):
    orders = [
        Order(reference='A-1', customer=customers[0]),
        Order(reference='A-2', customer=customers[0]),
        Order(reference='B-1', customer=customers[1]),
    ]
    BaseRepository(db_session, Order).add(orders, flush=True)
    return orders


def test_magic_find_by_collection_association(repository, customers, orders):
    assert repository.find_by_orders(orders[2]) == [customers[1]]
    assert repository.find_one_by_orders(orders[1]) is customers[0]


def test_find_by_collection_association_list(repository, customers, orders):
    result = repository.find_by({'orders': [orders[0], orders[2]]}, order_by={'name': 'asc'})

    assert [c.name for c in result] == ['Ann', 'Bob']
    assert repository.find_by({'orders': []}) == []


def test_count_by_empty_collection_association(repository, customers, orders):
    assert repository.count_by_orders(None) == 2


def test_find_by_many_to_one_association_list(db_session, customers, orders):
    result = BaseRepository(db_session, Order).find_by_customer(
        [customers[1], customers[2]],
        {'reference': 'asc'}
    )

    assert [o.reference for o in result] == ['B-1']
