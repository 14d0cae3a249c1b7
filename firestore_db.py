import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from google.cloud import firestore
from google.api_core.exceptions import GoogleAPICallError, RetryError, ServiceUnavailable

logger = logging.getLogger(__name__)

# -----------------------
# SETTINGS
# -----------------------
COLLECTION_NAME = "order_events"
MAX_RETRIES = 3
RETRY_SLEEP_SECONDS = 1.0

ORDER_PLACED = "ORDER_PLACED"
STATUS_CHANGED = "STATUS_CHANGED"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class OrderEventLog:
    """
    Audit trail of order events in Firestore Native.

    The client is created lazily on first write. Pass database="default"
    for Firestore Native; "(default)" is Datastore mode.
    """

    def __init__(self, database: str = "default", collection: str = COLLECTION_NAME,
                 client: Optional[firestore.Client] = None, retry_sleep: float = RETRY_SLEEP_SECONDS):
        self.database = database
        self.collection = collection
        self.retry_sleep = retry_sleep
        self._client = client

    def get_client(self) -> firestore.Client:
        if self._client is None:
            self._client = firestore.Client(database=self.database)
        return self._client

    def log(
        self,
        order_id: Any,
        customer_email: Optional[str],
        event: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Writes an event document and returns its id.

        - retries temporary errors
        - raises RuntimeError if every attempt fails
        """
        db = self.get_client()

        doc = {
            "order_id": str(order_id),
            "customer_email": customer_email or "",
            "event": event,
            "payload": payload or {},
            "created_at": firestore.SERVER_TIMESTAMP,
            "created_at_iso": _now_iso(),
        }

        last_err = None
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                ref = db.collection(self.collection).document()
                ref.set(doc)
                return ref.id

            except (ServiceUnavailable, GoogleAPICallError, RetryError) as e:
                last_err = e
                logger.warning("Firestore write failed (attempt %d/%d): %s", attempt, MAX_RETRIES, e)
                time.sleep(self.retry_sleep * attempt)

        raise RuntimeError(f"Firestore write failed after {MAX_RETRIES} attempts: {last_err}")
