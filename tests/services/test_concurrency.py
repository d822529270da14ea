"""
Tests that run joins and card draws on several threads at once, each with
its own session against the test database.
"""

import threading

from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.core.config import settings
from membership_service.core.errors import CapacityError
from membership_service.db.transaction import run_in_transaction
from membership_service.models.membership import Membership
from membership_service.services.membership.card_numbering import CardNumberingService
from membership_service.services.membership.lifecycle import MembershipLifecycle
from membership_service.services.membership.seat_allocator import SeatAllocator
from tests.utils.membership import create_cell, create_designation, national_scope

WORKERS = 8


def run_concurrently(session_factory, work, count=WORKERS):
    """
    Starts `count` threads that call work(db, index) at the same moment.
    Returns each thread's result, or the exception it raised.
    """
    barrier = threading.Barrier(count)
    results = [None] * count

    def run(index):
        db = session_factory()
        try:
            barrier.wait()
            results[index] = work(db, index)
        except Exception as e:  # asserted on by the caller
            results[index] = e
        finally:
            db.close()

    threads = [threading.Thread(target=run, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=120)
    return results


def test_concurrent_joins_never_exceed_capacity(db_session: Session, session_factory):
    cell = create_cell(db_session)
    designation = create_designation(db_session, "MEMBER", capacity=3)
    scope_in = national_scope(designation, cell)
    db_session.close()

    def join(db, index):
        membership = SeatAllocator(db).allocate_seat(user_id=f"user_{index}", scope_in=scope_in)
        return membership.seat_sequence

    results = run_concurrently(session_factory, join)

    seats = sorted(r for r in results if isinstance(r, int))
    refused = [r for r in results if not isinstance(r, int)]
    assert seats == [1, 2, 3]
    assert len(refused) == WORKERS - 3
    assert all(isinstance(e, CapacityError) for e in refused), refused

    memberships = db_session.query(Membership).all()
    assert len(memberships) == 3
    assert crud.membership.count_live_in_bucket(db_session, memberships[0].bucket_key) == 3


def test_concurrent_draws_never_repeat_a_number(db_session: Session, session_factory):
    db_session.close()

    def draw(db, index):
        cards = CardNumberingService(db)
        return run_in_transaction(
            db,
            lambda: cards.issue_card_number(2031),
            label=f"draw({index})",
            attempts=settings.CARD_NUMBER_MAX_ATTEMPTS,
        )

    results = run_concurrently(session_factory, draw)

    assert all(isinstance(r, tuple) for r in results), results
    numbers = [number for number, _ in results]
    assert len(set(numbers)) == WORKERS
    assert sorted(sequence for _, sequence in results) == list(range(1, WORKERS + 1))


def test_concurrent_activations_get_distinct_cards(db_session: Session, session_factory):
    cell = create_cell(db_session)
    designation = create_designation(db_session, "VOLUNTEER", capacity=WORKERS)
    allocator = SeatAllocator(db_session)
    membership_ids = [
        allocator.allocate_seat(
            user_id=f"user_{i}", scope_in=national_scope(designation, cell)
        ).id
        for i in range(WORKERS)
    ]
    db_session.close()

    def approve(db, index):
        membership = MembershipLifecycle(db).approve(membership_ids[index])
        return crud.id_card.get_by_membership(db, membership.id).card_number

    results = run_concurrently(session_factory, approve)

    assert all(isinstance(r, str) for r in results), results
    assert len(set(results)) == WORKERS
