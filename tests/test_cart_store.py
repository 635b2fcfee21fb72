import json

from cleangod.domain.cart.schemas import CartItem
from cleangod.domain.cart.store import CartStore
from cleangod.storage import MemoryStore


def item(item_id="svc-1", item_type="service", price=1000, quantity=1):
    return CartItem(id=item_id, type=item_type, name=item_id, price=price, quantity=quantity)


def test_add_merges_quantity_for_same_id_and_type():
    cart = CartStore(MemoryStore(), "device-0001")
    cart.add_item(item(quantity=1))
    cart.add_item(item(quantity=2))

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 3


def test_same_id_different_type_is_a_separate_line():
    cart = CartStore(MemoryStore(), "device-0001")
    cart.add_item(item("x", "service"))
    cart.add_item(item("x", "product", price=100))

    assert len(cart.items) == 2
    assert cart.get_item_count() == 2


def test_item_count_is_sum_of_quantities_and_skips_removed():
    cart = CartStore(MemoryStore(), "device-0001")
    cart.add_item(item("a", quantity=2))
    cart.add_item(item("b", quantity=3))
    cart.remove_item("a", "service")

    assert cart.get_item_count() == 3


def test_update_to_zero_is_remove():
    store = MemoryStore()
    removed = CartStore(store, "device-a")
    zeroed = CartStore(store, "device-b")
    for cart in (removed, zeroed):
        cart.add_item(item("a"))
        cart.add_item(item("b", quantity=2))

    removed.remove_item("a", "service")
    zeroed.update_quantity("a", "service", 0)

    assert removed.items == zeroed.items
    assert zeroed.get_item_count() == 2


def test_update_quantity_of_missing_item_is_ignored():
    cart = CartStore(MemoryStore(), "device-0001")
    cart.update_quantity("nope", "service", 4)
    assert cart.items == []


def test_total_amount():
    cart = CartStore(MemoryStore(), "device-0001")
    cart.add_item(item("a", price=1000, quantity=1))
    cart.add_item(item("b", item_type="product", price=100, quantity=3))
    assert cart.get_total_amount() == 1300


def test_every_mutation_is_flushed_and_rehydrated():
    store = MemoryStore()
    cart = CartStore(store, "device-0001")
    cart.add_item(item("a", quantity=2))
    cart.update_quantity("a", "service", 5)

    reopened = CartStore(store, "device-0001")
    assert reopened.items[0].quantity == 5
    assert json.loads(store.get("cart:device-0001"))[0]["quantity"] == 5


def test_clear_removes_key():
    store = MemoryStore()
    cart = CartStore(store, "device-0001")
    cart.add_item(item())
    cart.clear()

    assert store.get("cart:device-0001") is None
    assert CartStore(store, "device-0001").items == []


def test_corrupt_cart_loads_as_empty():
    store = MemoryStore()
    store.set("cart:device-0001", '[{"id": 1}]')
    assert CartStore(store, "device-0001").items == []


def test_devices_do_not_share_carts():
    store = MemoryStore()
    CartStore(store, "device-a").add_item(item())
    assert CartStore(store, "device-b").items == []
