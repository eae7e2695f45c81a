"""Organizer actions on customer transactions"""

import logging
from dataclasses import replace

from ticket_gateway.domain.exceptions import BackendAPIError
from ticket_gateway.domain.lifecycle import TransactionEvent, next_status
from ticket_gateway.domain.models import Transaction
from ticket_gateway.infrastructure.clients.ticketing import TicketingClient
from ticket_gateway.infrastructure.observability.metrics import backend_failures_counter, status_transition_counter


class OrganizerReview:
    """Accept or reject transactions waiting for admin confirmation"""

    def __init__(self, client: TicketingClient):
        self.client = client

    async def accept(self, transaction: Transaction) -> Transaction:
        return await self._review(transaction, TransactionEvent.ACCEPT)

    async def reject(self, transaction: Transaction) -> Transaction:
        return await self._review(transaction, TransactionEvent.REJECT)

    async def _review(self, transaction: Transaction, event: TransactionEvent) -> Transaction:
        """
        Request the decision and return the transaction in its new status.

        The input transaction is left untouched if the backend refuses.

        Raises:
            InvalidTransitionError: Transaction is not waiting for confirmation
            BackendAPIError: Backend rejected or failed the request
        """
        new_status = next_status(transaction.status, event)
        send = self.client.accept_transaction if event is TransactionEvent.ACCEPT else self.client.reject_transaction

        try:
            await send(transaction.id)
        except BackendAPIError as e:
            backend_failures_counter.labels(operation=f"{event.value}_transaction").inc()
            logging.error(f"Backend error during {event.value}: {e}", extra={"transaction_id": transaction.id})
            raise

        status_transition_counter.labels(event=event.value).inc()
        logging.info(
            "Transaction reviewed",
            extra={"transaction_id": transaction.id, "event": event.value, "status": new_status.value},
        )
        return replace(transaction, status=new_status)
