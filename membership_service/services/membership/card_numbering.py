# membership_service/services/membership/card_numbering.py
"""
Credential numbering.

Numbers look like HRCI-2025-00042: a configurable prefix, a four digit
epoch (the issue year) and a five digit sequence that only grows within
the epoch. The sequence is drawn from a per-epoch counter row held FOR
UPDATE; the unique index on card_number catches anything the lock misses
and the whole unit is replayed.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.constants.membership import AuditAction, CardStatus, MembershipStatus
from membership_service.core.config import settings
from membership_service.core.errors import InvalidTransitionError, NumberingExhaustedError
from membership_service.db.transaction import run_in_transaction
from membership_service.models.id_card import IdCard
from membership_service.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

MAX_EPOCH = 9999
MAX_SEQUENCE = 99999


def format_card_number(epoch: int, sequence: int, prefix: Optional[str] = None) -> str:
    if not 0 <= epoch <= MAX_EPOCH:
        raise ValueError(f"Epoch {epoch} does not fit in four digits")
    if not 1 <= sequence <= MAX_SEQUENCE:
        raise NumberingExhaustedError(epoch)
    return f"{prefix or settings.CARD_NUMBER_PREFIX}-{epoch:04d}-{sequence:05d}"


def card_number_pattern(prefix: Optional[str] = None) -> re.Pattern:
    return re.compile(
        rf"^{re.escape(prefix or settings.CARD_NUMBER_PREFIX)}-\d{{4}}-\d{{5}}$", re.IGNORECASE
    )


def is_well_formed(card_number: Optional[str], prefix: Optional[str] = None) -> bool:
    return bool(card_number) and card_number_pattern(prefix).match(card_number) is not None


class CardNumberingService:
    def __init__(self, db: Session):
        self.db = db

    def issue_card_number(self, epoch: int) -> Tuple[str, int]:
        """
        Takes the next number of the epoch. Must run inside the caller's
        transaction; the counter lock is held until it commits.
        """
        counter = crud.id_card.lock_counter(self.db, epoch)
        sequence = max(counter.last_sequence, crud.id_card.max_sequence(self.db, epoch)) + 1
        if sequence > MAX_SEQUENCE:
            logger.error(f"Card number space exhausted for epoch {epoch}")
            raise NumberingExhaustedError(epoch)
        counter.last_sequence = sequence
        self.db.flush()
        return format_card_number(epoch, sequence), sequence

    def issue_for_membership(
        self,
        membership,
        *,
        now: Optional[datetime] = None,
        actor_type: str = "system",
        actor_id: Optional[str] = None,
    ) -> IdCard:
        """
        Issues the membership's card, or reissues it under a new number when
        one exists. Runs inside the caller's transaction.
        """
        now = now or utcnow()
        card_number, sequence = self.issue_card_number(now.year)

        card = crud.id_card.get_by_membership(self.db, membership.id)
        previous = None
        if card is None:
            card = IdCard(membership_id=membership.id)
            self.db.add(card)
            action = AuditAction.ID_CARD_ISSUED
        else:
            previous = {"card_number": card.card_number, "status": card.status.value}
            action = AuditAction.ID_CARD_REISSUED

        card.card_number = card_number
        card.epoch = now.year
        card.sequence = sequence
        card.status = CardStatus.GENERATED
        card.issued_at = now
        card.expires_at = membership.expires_at
        card.full_name = membership.full_name
        card.designation_name = membership.designation.name if membership.designation else None
        card.cell_name = membership.cell.name if membership.cell else None
        self.db.flush()

        crud.audit_log.log_action(
            self.db,
            action=action,
            actor_type=actor_type,
            actor_id=actor_id,
            membership_id=membership.id,
            entity_type="id_card",
            entity_id=card.id,
            previous_state=previous,
            new_state={"card_number": card.card_number, "status": card.status.value},
        )
        logger.info(f"Card {card.card_number} issued for membership {membership.id}")
        return card

    def set_status(self, membership, status: CardStatus) -> Optional[IdCard]:
        card = crud.id_card.get_by_membership(self.db, membership.id)
        if card is not None:
            card.status = status
        return card

    def issue_credential(
        self,
        membership_id: str,
        *,
        reissue: bool = False,
        performed_by: Optional[str] = None,
    ) -> IdCard:
        """
        Returns the membership's current card, issuing one if it has none
        (or a fresh number when `reissue` is set). ACTIVE memberships only.
        """

        def work():
            membership = crud.membership.get_or_404(self.db, membership_id, for_update=True)
            if membership.status != MembershipStatus.ACTIVE:
                raise InvalidTransitionError(
                    membership.id, membership.status.value, "issue a credential for"
                )
            card = crud.id_card.get_by_membership(self.db, membership.id)
            if card is not None and card.status == CardStatus.GENERATED and not reissue:
                return card
            return self.issue_for_membership(
                membership,
                actor_type="admin" if performed_by else "system",
                actor_id=performed_by,
            )

        return run_in_transaction(
            self.db,
            work,
            label=f"issue_credential({membership_id})",
            attempts=settings.CARD_NUMBER_MAX_ATTEMPTS,
        )

    def backfill_card_numbers(self) -> List[Tuple[str, str, str]]:
        """
        Renumbers every card whose number is malformed, oldest issue first,
        so new numbers keep the original issue order. Each card is its own
        transaction; the epoch is the year of the original issue.

        Returns:
            [(card_id, old_number, new_number), ...]
        """
        renumbered = []
        card_ids = [
            card.id
            for card in crud.id_card.list_by_issue_order(self.db)
            if not is_well_formed(card.card_number)
        ]

        for card_id in card_ids:

            def work():
                card = self.db.query(IdCard).filter(IdCard.id == card_id).one()
                epoch = as_utc(card.issued_at).year
                old_number = card.card_number
                new_number, sequence = self.issue_card_number(epoch)
                card.card_number = new_number
                card.epoch = epoch
                card.sequence = sequence
                self.db.flush()
                crud.audit_log.log_action(
                    self.db,
                    action=AuditAction.ID_CARD_RENUMBERED,
                    actor_type="system",
                    membership_id=card.membership_id,
                    entity_type="id_card",
                    entity_id=card.id,
                    previous_state={"card_number": old_number},
                    new_state={"card_number": new_number},
                )
                return old_number, new_number

            old_number, new_number = run_in_transaction(
                self.db,
                work,
                label=f"backfill_card_number({card_id})",
                attempts=settings.CARD_NUMBER_MAX_ATTEMPTS,
            )
            renumbered.append((card_id, old_number, new_number))
            logger.info(f"Card {card_id} renumbered {old_number} -> {new_number}")

        logger.info(f"Card number backfill complete: {len(renumbered)} card(s) renumbered")
        return renumbered
