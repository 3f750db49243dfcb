from bson import ObjectId

from conftest import CUSTOMER, SELLER
from services import OrderService


def order_doc(plant_id, status="Pending", customer=CUSTOMER, seller=SELLER):
    return {
        "customer": {"email": customer, "name": "Cleo"},
        "plantId": plant_id,
        "seller": seller,
        "quantity": 1,
        "price": 12.5,
        "address": "1 Garden Lane",
        "status": status,
    }


def test_customer_places_order(client, users, login, plant, db):
    login(CUSTOMER)
    res = client.post("/order", json=order_doc(plant))
    assert res.status_code == 200
    stored = db["orders"].find_one({"_id": ObjectId(res.json()["insertedId"])})
    assert stored["plantId"] == plant
    assert stored["customer"]["email"] == CUSTOMER
    assert stored["status"] == "Pending"


def test_order_rejects_malformed_plant_id(client, users, login, db):
    login(CUSTOMER)
    res = client.post("/order", json=order_doc("P1"))
    assert res.status_code == 422
    assert db["orders"].count_documents({}) == 0


def test_customer_orders_are_enriched(client, users, login, plant, db):
    db["orders"].insert_one(order_doc(plant))
    db["orders"].insert_one(order_doc(plant, customer="someone@example.com"))
    login(CUSTOMER)

    res = client.get(f"/customer-orders/{CUSTOMER}")
    assert res.status_code == 200
    orders = res.json()
    assert len(orders) == 1
    order = orders[0]
    assert order["name"] == "Rose"
    assert order["category"] == "Flower"
    assert order["image"] == "rose.png"
    assert order["plantId"] == plant
    assert "plants" not in order
    assert isinstance(order["_id"], str)


def test_orders_for_deleted_plants_are_dropped(client, users, login, plant, db):
    db["orders"].insert_one(order_doc(plant))
    db["plants"].delete_one({"_id": ObjectId(plant)})
    login(CUSTOMER)
    assert client.get(f"/customer-orders/{CUSTOMER}").json() == []


def test_seller_orders_are_enriched(client, users, login, plant, db):
    db["orders"].insert_one(order_doc(plant))
    db["orders"].insert_one(order_doc(plant, seller="other@example.com"))
    login(SELLER)

    res = client.get(f"/seller-orders/{SELLER}")
    assert res.status_code == 200
    orders = res.json()
    assert len(orders) == 1
    assert orders[0]["name"] == "Rose"
    assert orders[0]["category"] == "Flower"


def test_customer_cannot_read_seller_orders(client, users, login):
    login(CUSTOMER)
    assert client.get(f"/seller-orders/{SELLER}").status_code == 403


def test_cancel_pending_order(client, users, login, plant, db):
    order_id = str(db["orders"].insert_one(order_doc(plant)).inserted_id)
    login(CUSTOMER)
    res = client.delete(f"/order/{order_id}")
    assert res.status_code == 200
    assert res.json()["deletedCount"] == 1
    assert db["orders"].count_documents({}) == 0


def test_cannot_cancel_delivered_order(client, users, login, plant, db):
    login(CUSTOMER)
    for status in ("Delivered", "delivered"):
        order_id = str(db["orders"].insert_one(order_doc(plant, status=status)).inserted_id)
        res = client.delete(f"/order/{order_id}")
        assert res.status_code == 409
        assert res.json() == {"message": "Cannot cancel once the order is delivered"}
    assert db["orders"].count_documents({}) == 2


def test_cancel_missing_order(client, users, login):
    login(CUSTOMER)
    assert client.delete(f"/order/{ObjectId()}").status_code == 404
    assert client.delete("/order/garbage").status_code == 400


def test_join_skips_unresolvable_plant_ids(db, plant):
    db["orders"].insert_many([
        order_doc(plant),
        order_doc("not-an-object-id"),
        order_doc(str(ObjectId())),
    ])
    orders = OrderService(db).list_by_customer(CUSTOMER)
    assert len(orders) == 1
    assert orders[0]["name"] == "Rose"


def test_join_with_no_orders(db, plant):
    assert OrderService(db).list_by_seller(SELLER) == []


def test_join_leaves_out_fields_the_plant_lacks(db):
    fern = str(db["plants"].insert_one({"name": "Fern", "category": "Indoor"}).inserted_id)
    db["orders"].insert_one(order_doc(fern))
    orders = OrderService(db).list_by_customer(CUSTOMER)
    assert len(orders) == 1
    assert orders[0]["name"] == "Fern"
    assert orders[0]["category"] == "Indoor"
    assert "image" not in orders[0]


def test_nested_object_ids_are_rendered(client, users, login, plant, db):
    doc = order_doc(plant)
    doc["customer"]["ref"] = ObjectId()
    db["orders"].insert_one(doc)
    login(CUSTOMER)
    res = client.get(f"/customer-orders/{CUSTOMER}")
    assert res.status_code == 200
    assert res.json()[0]["customer"]["ref"] == str(doc["customer"]["ref"])
