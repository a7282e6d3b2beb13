"""Durable order storage for storefront."""

import fcntl
import json
import logging
import os
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from . import config
from .errors import CorruptDataError, OrderNotFoundError, PersistenceError
from .models import Order

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
ORDERS_FILE = "orders.json"
LOCK_FILE = ".orders.lock"


class OrderStore:
    """
    Manages the persisted list of completed orders, newest first.

    Orders are kept in a single JSON document keyed by order ID. Every
    read-modify-write holds an exclusive file lock and the document is
    replaced atomically, so concurrent writers on one host never lose orders.
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        save_latency: float | None = None,
        list_latency: float | None = None,
    ):
        """
        Initialize OrderStore.

        Args:
            config_dir: Override data directory (for testing).
            save_latency: Simulated backend delay for ``save`` in seconds.
            list_latency: Simulated backend delay for ``list`` in seconds.
        """
        self.config_dir = Path(config_dir) if config_dir else config.DATA_DIR
        self.config_path = self.config_dir / ORDERS_FILE
        self.save_latency = config.SAVE_LATENCY if save_latency is None else save_latency
        self.list_latency = config.LIST_LATENCY if list_latency is None else list_latency

    def _ensure_dir(self) -> None:
        """Ensure data directory exists."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _lock(self) -> Iterator[None]:
        """Acquire exclusive lock on the orders file for read-modify-write operations."""
        self._ensure_dir()
        lock_path = self.config_dir / LOCK_FILE
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    @staticmethod
    def _simulate_latency(seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)

    def _load_data(self) -> dict[str, Any]:
        """
        Load the orders document from disk.

        Raises:
            CorruptDataError: If the file isn't valid JSON or has the wrong shape.
        """
        if not self.config_path.exists():
            return {"schema_version": SCHEMA_VERSION, "orders": []}

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CorruptDataError(str(self.config_path), f"invalid JSON: {e.msg}")
        except UnicodeDecodeError:
            raise CorruptDataError(str(self.config_path), "not UTF-8 text")

        # Bare arrays are accepted as written by the original single-key backend
        if isinstance(data, list):
            data = {"schema_version": SCHEMA_VERSION, "orders": data}

        if not isinstance(data, dict) or not isinstance(data.get("orders"), list):
            raise CorruptDataError(str(self.config_path), "expected an 'orders' list")

        version = data.get("schema_version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise CorruptDataError(
                str(self.config_path), f"unsupported schema version {version}"
            )

        return data

    def _save_data(self, data: dict[str, Any]) -> None:
        """Save the orders document to disk atomically."""
        self._ensure_dir()

        fd, temp_path = tempfile.mkstemp(
            dir=self.config_dir, prefix=".orders_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(temp_path, self.config_path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def _parse_orders(self, raw: list[Any], strict: bool) -> list[Order]:
        orders: list[Order] = []
        for entry in raw:
            try:
                orders.append(Order.from_dict(entry))
            except Exception as e:
                if strict:
                    raise CorruptDataError(str(self.config_path), f"bad order entry: {e}")
                logger.warning("Skipping malformed order entry in %s: %s", self.config_path, e)
        return orders

    def exists(self, order_id: str) -> bool:
        """Check whether an order ID is already stored. Corrupt data counts as absent."""
        try:
            data = self._load_data()
        except CorruptDataError:
            return False
        return any(
            isinstance(o, dict) and o.get("id") == order_id for o in data["orders"]
        )

    def save(self, order: Order) -> bool:
        """
        Persist an order at the head of the list.

        Saving is idempotent per order ID: if the ID is already stored the
        call is a no-op, so a retried submission never writes twice.

        Returns:
            True if the order was written, False if it was already stored.

        Raises:
            PersistenceError: If the write fails or existing data is unreadable.
        """
        self._simulate_latency(self.save_latency)

        try:
            with self._lock():
                try:
                    data = self._load_data()
                except CorruptDataError as e:
                    raise PersistenceError(str(e)) from e

                for existing in data["orders"]:
                    if isinstance(existing, dict) and existing.get("id") == order.id:
                        logger.info("Order %s already stored, skipping duplicate save", order.id)
                        return False

                data["orders"].insert(0, order.to_dict())
                data["schema_version"] = SCHEMA_VERSION
                self._save_data(data)
        except OSError as e:
            logger.exception("Failed to save order %s", order.id)
            raise PersistenceError(e.strerror or str(e)) from e

        logger.info("Saved order %s (total %s)", order.id, order.total)
        return True

    def list(self, strict: bool = False) -> list[Order]:
        """
        List all stored orders, newest first.

        Args:
            strict: If True, raise on corrupt data instead of returning ``[]``.

        Raises:
            CorruptDataError: Only when ``strict`` is True.
        """
        self._simulate_latency(self.list_latency)

        try:
            data = self._load_data()
        except CorruptDataError:
            if strict:
                raise
            logger.warning("Order data at %s is corrupt, returning no orders", self.config_path)
            return []

        return self._parse_orders(data["orders"], strict)

    def get(self, order_id: str) -> Order:
        """
        Get an order by ID.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
        """
        for order in self.list():
            if order.id == order_id:
                return order
        raise OrderNotFoundError(order_id)

    def count(self) -> int:
        return len(self.list())

    def clear(self) -> int:
        """
        Erase every stored order.

        Returns:
            Number of orders removed (0 if the data was missing or corrupt).

        Raises:
            PersistenceError: If the file cannot be removed.
        """
        with self._lock():
            try:
                removed = len(self._load_data()["orders"])
            except CorruptDataError:
                removed = 0

            try:
                self.config_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                raise PersistenceError(e.strerror or str(e)) from e

        logger.info("Cleared %d order(s) from %s", removed, self.config_path)
        return removed
