"""
Identity Service - Core business logic for identity reconciliation
Discovers the full cluster connected to an observation, keeps the oldest
contact as the single primary, records new information as a secondary and
builds the consolidated response
"""

import asyncio
import logging
from collections import deque
from contextlib import AsyncExitStack
from typing import Dict, List, Optional

from errors import ValidationError
from schemas.contact import ContactLinkUpdate, ContactRecord, LinkPrecedence
from schemas.identify import IdentifyRequest, IdentifyResponse, ContactResponse
from stores.base import ContactStore

logger = logging.getLogger(__name__)


class IdentityService:
    """
    Core service for identity reconciliation logic
    Holds no contact state between calls; the store owns persisted contacts
    """

    def __init__(self, store: ContactStore, serialize: bool = True):
        self.store = store
        # One read-modify-write at a time within this process
        self._lock: Optional[asyncio.Lock] = asyncio.Lock() if serialize else None

    async def identify_contact(self, request: IdentifyRequest) -> IdentifyResponse:
        """Transport-facing wrapper around identify()"""
        contact = await self.identify(request.email, request.phoneNumber)
        return IdentifyResponse(contact=contact)

    async def identify(self, email: Optional[str] = None, phone: Optional[str] = None) -> ContactResponse:
        """
        Main orchestration method for identity reconciliation

        Algorithm:
        1. Find existing contacts matching email or phone
        2. If no matches -> create new primary contact
        3. Expand matches to every connected contact
        4. Oldest contact becomes the primary, everything else links to it
        5. Create a secondary if the observation carries new information
        6. Return consolidated contact information
        """
        email = email or None
        phone = phone or None
        if email is None and phone is None:
            raise ValidationError("Either email or phoneNumber must be provided")

        async with AsyncExitStack() as stack:
            if self._lock is not None:
                await stack.enter_async_context(self._lock)
            return await self._reconcile(email, phone)

    async def _reconcile(self, email: Optional[str], phone: Optional[str]) -> ContactResponse:
        matches = await self.store.find_by_email_or_phone(email, phone)

        if not matches:
            contact_id = await self.store.create(
                email=email, phone=phone, precedence=LinkPrecedence.PRIMARY
            )
            logger.info(f"Created primary contact {contact_id}")
            return ContactResponse(
                primaryContactId=contact_id,
                emails=[email] if email else [],
                phoneNumbers=[phone] if phone else [],
                secondaryContactIds=[]
            )

        cluster = await self._expand_cluster(matches)
        primary = min(cluster.values(), key=ContactRecord.sort_key)

        await self._flatten_cluster(cluster, primary)

        if self._has_new_information(cluster.values(), email, phone):
            contact_id = await self.store.create(
                email=email,
                phone=phone,
                linked_id=primary.id,
                precedence=LinkPrecedence.SECONDARY
            )
            logger.info(f"Created secondary contact {contact_id} linked to {primary.id}")
            # Re-read so the new row carries the store's timestamps
            for contact in await self.store.find_by_cluster_anchor(contact_id):
                if contact.id == contact_id:
                    cluster[contact_id] = contact

        return self._build_consolidated_response(cluster, primary.id)

    async def _expand_cluster(self, seeds: List[ContactRecord]) -> Dict[int, ContactRecord]:
        """
        Breadth-first fixed point over id / linked_id anchors
        Pulls in every contact reachable from the seeds, including
        separate clusters that the observation now joins
        """
        cluster: Dict[int, ContactRecord] = {c.id: c for c in seeds}
        pending = deque()
        for contact in seeds:
            pending.append(contact.id)
            if contact.linked_id is not None:
                pending.append(contact.linked_id)

        visited = set()
        while pending:
            anchor = pending.popleft()
            if anchor in visited:
                continue
            visited.add(anchor)

            for contact in await self.store.find_by_cluster_anchor(anchor):
                if contact.id in cluster:
                    continue
                cluster[contact.id] = contact
                pending.append(contact.id)
                if contact.linked_id is not None:
                    pending.append(contact.linked_id)

        logger.debug(f"Expanded {len(seeds)} matches to cluster {sorted(cluster)} in {len(visited)} lookups")
        return cluster

    async def _flatten_cluster(self, cluster: Dict[int, ContactRecord], primary: ContactRecord) -> None:
        """
        Make `primary` the only primary and link every other member straight to it
        Updates the store and the in-memory view together
        """
        if not primary.is_primary() or primary.linked_id is not None:
            # The oldest member was linked elsewhere (e.g. its primary was deleted)
            changes = ContactLinkUpdate(linked_id=None, link_precedence=LinkPrecedence.PRIMARY)
            await self.store.update(primary.id, changes)
            cluster[primary.id] = primary.model_copy(
                update={"linked_id": None, "link_precedence": LinkPrecedence.PRIMARY}
            )
            logger.info(f"Promoted contact {primary.id} to primary")

        for contact in sorted(cluster.values(), key=ContactRecord.sort_key):
            if contact.id == primary.id:
                continue
            if contact.is_secondary() and contact.linked_id == primary.id:
                continue

            changes = ContactLinkUpdate(linked_id=primary.id, link_precedence=LinkPrecedence.SECONDARY)
            await self.store.update(contact.id, changes)
            cluster[contact.id] = contact.model_copy(
                update={"linked_id": primary.id, "link_precedence": LinkPrecedence.SECONDARY}
            )

            if contact.is_primary():
                logger.info(f"Merged cluster of primary {contact.id} into primary {primary.id}")
            else:
                logger.info(f"Relinked contact {contact.id} from {contact.linked_id} to {primary.id}")

    def _has_new_information(self, contacts, email: Optional[str], phone: Optional[str]) -> bool:
        """
        Check if the observation holds an email or phone not yet seen anywhere in the cluster
        A value held by any member counts as known, even if that member is
        otherwise unrelated to the other submitted field
        """
        all_emails = set()
        all_phones = set()
        for contact in contacts:
            if contact.email:
                all_emails.add(contact.email)
            if contact.phone_number:
                all_phones.add(contact.phone_number)

        has_new_email = bool(email) and email not in all_emails
        has_new_phone = bool(phone) and phone not in all_phones

        return has_new_email or has_new_phone

    def _build_consolidated_response(self, cluster: Dict[int, ContactRecord], primary_id: int) -> ContactResponse:
        """
        Build the consolidated response with all contact information
        Primary contact info appears first, then the rest in creation order
        """
        primary = cluster[primary_id]
        others = sorted(
            (c for c in cluster.values() if c.id != primary_id),
            key=ContactRecord.sort_key
        )

        emails: List[str] = []
        phone_numbers: List[str] = []
        for contact in [primary] + others:
            if contact.email and contact.email not in emails:
                emails.append(contact.email)
            if contact.phone_number and contact.phone_number not in phone_numbers:
                phone_numbers.append(contact.phone_number)

        return ContactResponse(
            primaryContactId=primary_id,
            emails=emails,
            phoneNumbers=phone_numbers,
            secondaryContactIds=[c.id for c in others]
        )
