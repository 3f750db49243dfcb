import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.database import Database

from database import ORDERS, PLANTS, USERS, ack, create_document, get_documents, serialize, to_object_id
from errors import Conflict, Forbidden, InvalidState, NotFound
from schemas import OrderIn, PlantIn, Role, UserStatus

logger = logging.getLogger(__name__)

DELIVERED = "delivered"
INCREASE = "increase"

# fields copied from the joined plant onto each order
ENRICH_FIELDS = ("name", "category", "image")


class UserDirectory:
    def __init__(self, db: Database):
        self.users = db[USERS]

    def upsert_if_absent(self, email: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        existing = self.users.find_one({"email": email})
        if existing:
            return serialize(existing)
        doc = {**payload, "email": email, "role": Role.CUSTOMER.value, "timestamp": datetime.now(timezone.utc)}
        self.users.insert_one(doc)
        logger.info("Created user %s", email)
        return payload

    def request_upgrade(self, email: str) -> Dict[str, Any]:
        user = self.users.find_one({"email": email})
        if not user:
            raise InvalidState("No account found for this email.")
        if user.get("status") == UserStatus.REQUESTED.value:
            raise InvalidState("You have already requested, wait for some time.")
        result = self.users.update_one({"email": email}, {"$set": {"status": UserStatus.REQUESTED.value}})
        return ack(result)

    def get_role(self, email: str) -> Optional[str]:
        user = self.users.find_one({"email": email}, {"role": 1})
        return user.get("role") if user else None

    def list_all_except(self, email: str) -> List[Dict[str, Any]]:
        return [serialize(u) for u in self.users.find({"email": {"$ne": email}})]

    def set_role(self, email: str, role: Role) -> Dict[str, Any]:
        result = self.users.update_one(
            {"email": email},
            {"$set": {"role": role.value, "status": UserStatus.VERIFIED.value}},
        )
        logger.info("Set role of %s to %s", email, role.value)
        return ack(result)


class PlantInventory:
    def __init__(self, db: Database):
        self.db = db
        self.plants = db[PLANTS]

    def create(self, plant: PlantIn, seller_email: str) -> Dict[str, Any]:
        if plant.seller.email.lower() != seller_email.lower():
            raise Forbidden("You can only list plants under your own email")
        return ack(create_document(self.db, PLANTS, plant))

    def list_all(self) -> List[Dict[str, Any]]:
        return get_documents(self.db, PLANTS)

    def get_by_id(self, plant_id: str) -> Dict[str, Any]:
        plant = self.plants.find_one({"_id": to_object_id(plant_id)})
        if not plant:
            raise NotFound("Plant not found")
        return serialize(plant)

    def delete_by_id(self, plant_id: str, seller_email: str) -> Dict[str, Any]:
        oid = to_object_id(plant_id)
        plant = self.plants.find_one({"_id": oid}, {"seller.email": 1})
        if not plant:
            raise NotFound("Plant not found")
        if (plant.get("seller") or {}).get("email") != seller_email:
            raise Forbidden("You can only delete your own plants")
        return ack(self.plants.delete_one({"_id": oid}))

    def adjust_quantity(self, plant_id: str, delta: int, direction: str) -> Dict[str, Any]:
        oid = to_object_id(plant_id)
        if direction == INCREASE:
            result = self.plants.update_one({"_id": oid}, {"$inc": {"quantity": delta}})
            if result.matched_count == 0:
                raise NotFound("Plant not found")
            return ack(result)

        # the stock floor is part of the filter so the decrement stays one atomic update
        result = self.plants.update_one({"_id": oid, "quantity": {"$gte": delta}}, {"$inc": {"quantity": -delta}})
        if result.matched_count == 0:
            if self.plants.find_one({"_id": oid}, {"_id": 1}) is None:
                raise NotFound("Plant not found")
            raise Conflict("Not enough plants in stock")
        return ack(result)

    def list_by_seller(self, email: str) -> List[Dict[str, Any]]:
        return get_documents(self.db, PLANTS, {"seller.email": email})


class OrderService:
    def __init__(self, db: Database):
        self.db = db
        self.orders = db[ORDERS]
        self.plants = db[PLANTS]

    def create(self, order: OrderIn) -> Dict[str, Any]:
        result = create_document(self.db, ORDERS, order)
        logger.info("Order %s placed by %s", result.inserted_id, order.customer.email)
        return ack(result)

    def cancel(self, order_id: str) -> Dict[str, Any]:
        oid = to_object_id(order_id)
        order = self.orders.find_one({"_id": oid})
        if not order:
            raise NotFound("Order not found")
        if str(order.get("status", "")).lower() == DELIVERED:
            raise Conflict("Cannot cancel once the order is delivered")
        return ack(self.orders.delete_one({"_id": oid}))

    def list_by_customer(self, email: str) -> List[Dict[str, Any]]:
        return self._enriched({"customer.email": email})

    def list_by_seller(self, email: str) -> List[Dict[str, Any]]:
        return self._enriched({"seller": email})

    def _enriched(self, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Inner-join the matched orders against plants on ``plantId``.

        ``plantId`` is stored as a string and coerced to an ObjectId for the
        lookup. Display fields the plant has are copied onto each order; orders
        whose plant no longer exists (or whose plantId is not an ObjectId) are
        left out of the result.
        """
        orders = list(self.orders.find(query))
        plant_ids = {ObjectId(o["plantId"]) for o in orders if ObjectId.is_valid(o.get("plantId"))}
        if not plant_ids:
            return []

        projection = {field: 1 for field in ENRICH_FIELDS}
        plants = {p["_id"]: p for p in self.plants.find({"_id": {"$in": list(plant_ids)}}, projection)}

        result = []
        for order in orders:
            plant_id = order.get("plantId")
            plant = plants.get(ObjectId(plant_id)) if ObjectId.is_valid(plant_id) else None
            if plant is None:
                continue
            enriched = serialize(order)
            for field in ENRICH_FIELDS:
                if field in plant:
                    enriched[field] = plant[field]
            result.append(enriched)
        return result
