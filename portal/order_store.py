# portal/order_store.py
"""
OrderStore

In-process map from a payment-provider order/session id to the
RequestRecord submitted before payment.

- `put` when the provider order is created
- `take` when payment is confirmed; the entry is removed in the same step so
  an id can only be fulfilled once

Not persistent across restarts and never evicted: orders that are never
confirmed stay here until the process exits.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from .errors import OrderNotFound
from .models import RequestRecord

logger = logging.getLogger(__name__)


class OrderStore:
    """
    Dictionary-based pending-order store.

    The lock only guards the dict operations; callers never hold it across
    network calls.
    """

    def __init__(self) -> None:
        self._orders: Dict[str, RequestRecord] = {}
        self._lock = threading.Lock()

    def put(self, order_id: str, record: RequestRecord) -> None:
        """
        Store `record` under `order_id`. An existing entry is overwritten.
        """
        with self._lock:
            replaced = order_id in self._orders
            self._orders[order_id] = record
        if replaced:
            logger.warning("Pending order %s overwritten", order_id)

    def take(self, order_id: str) -> RequestRecord:
        """
        Remove and return the record for `order_id`.

        Raises OrderNotFound if it was never stored or was already taken.
        """
        with self._lock:
            record = self._orders.pop(order_id, None)
        if record is None:
            raise OrderNotFound(
                "No se encontraron los datos de la lectura para esta sesión. "
                "Si ya pagaste, contáctame por correo."
            )
        return record

    def peek(self, order_id: str) -> Optional[RequestRecord]:
        with self._lock:
            return self._orders.get(order_id)

    def __contains__(self, order_id: object) -> bool:
        with self._lock:
            return order_id in self._orders

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)
