"""Abstract repository for ReturnRequest."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.returns import ReturnRequest, ReturnStatus


class ReturnRepository(ABC):

    @abstractmethod
    def get_by_id(self, return_id: int) -> ReturnRequest | None:
        """Return a return request by its ID, or None."""

    @abstractmethod
    def list_by_ids(self, return_ids: list[int]) -> list[ReturnRequest]:
        """Return the requests among ``return_ids`` that exist, ordered by ID."""

    @abstractmethod
    def list_for_items(self, item_ids: list[int]) -> list[ReturnRequest]:
        """Return every request (voided or not) referencing any of ``item_ids``."""

    @abstractmethod
    def add_all(self, requests: list[ReturnRequest]) -> None:
        """Persist a batch of new requests in one transaction, assigning IDs.

        Raises ValidationError, writing nothing, if any item already has
        a non-voided request.
        """

    @abstractmethod
    def save_status(self, request: ReturnRequest, expected_status: ReturnStatus) -> bool:
        """Persist a status change if the stored status is still ``expected_status``.

        Returns False, writing nothing, when another writer got there first.
        """
