"""Reconciliation of product stock against purchase and sale line items."""
import random
from decimal import Decimal

import pytest

from stockapi.common.exceptions import InsufficientStockError, InvalidRequestError, NotFoundError
from stockapi.models import Product, Purchase, PurchaseDetail, Sale, SaleDetail
from stockapi.services import stock_reconciler
from stockapi.services.stock_reconciler import PURCHASE, SALE


def stock_of(db, product_id):
    return db.query(Product.stock_level).filter(Product.id == product_id).scalar()


def test_purchase_sale_update_delete_scenario(db_session, product, purchase, sale):
    assert stock_of(db_session, product.id) == 10

    stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, product.id, 5, Decimal("4.00"))
    assert stock_of(db_session, product.id) == 15

    sold = stock_reconciler.insert_line_item(db_session, SALE, sale.id, product.id, 3, Decimal("6.50"))
    assert stock_of(db_session, product.id) == 12

    with pytest.raises(InsufficientStockError) as exc_info:
        stock_reconciler.update_line_item(
            db_session, SALE, sold.id, sale.id, product.id, 20, Decimal("6.50")
        )
    assert exc_info.value.available == 12
    assert exc_info.value.required == 17
    assert stock_of(db_session, product.id) == 12

    unchanged = db_session.query(SaleDetail).filter(SaleDetail.id == sold.id).one()
    assert unchanged.quantity == 3

    stock_reconciler.delete_line_item(db_session, SALE, sold.id)
    assert stock_of(db_session, product.id) == 15
    assert db_session.query(SaleDetail).count() == 0


def test_rejected_sale_line_item_is_not_persisted(db_session, product, sale):
    with pytest.raises(InsufficientStockError) as exc_info:
        stock_reconciler.insert_line_item(db_session, SALE, sale.id, product.id, 11, Decimal("6.50"))

    assert "Insufficient stock for product Widget" in exc_info.value.message
    assert stock_of(db_session, product.id) == 10
    assert db_session.query(SaleDetail).count() == 0
    db_session.refresh(sale)
    assert sale.total_amount == Decimal("0")


def test_sale_of_entire_stock_is_allowed(db_session, product, sale):
    stock_reconciler.insert_line_item(db_session, SALE, sale.id, product.id, 10, Decimal("1.00"))
    assert stock_of(db_session, product.id) == 0


def test_purchase_delete_then_reinsert_restores_stock(db_session, product, purchase):
    detail = stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, product.id, 7, Decimal("2.00"))
    assert stock_of(db_session, product.id) == 17

    stock_reconciler.delete_line_item(db_session, PURCHASE, detail.id)
    assert stock_of(db_session, product.id) == 10

    stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, product.id, 7, Decimal("2.00"))
    assert stock_of(db_session, product.id) == 17


def test_purchase_delete_floors_stock_at_zero(db_session, product, sale, purchase):
    detail = stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, product.id, 5, Decimal("2.00"))
    stock_reconciler.insert_line_item(db_session, SALE, sale.id, product.id, 13, Decimal("3.00"))
    assert stock_of(db_session, product.id) == 2

    stock_reconciler.delete_line_item(db_session, PURCHASE, detail.id)
    assert stock_of(db_session, product.id) == 0


def test_purchase_quantity_decrease_reverses_delta(db_session, product, purchase):
    detail = stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, product.id, 8, Decimal("2.00"))
    assert stock_of(db_session, product.id) == 18

    stock_reconciler.update_line_item(db_session, PURCHASE, detail.id, purchase.id, product.id, 3, Decimal("2.00"))
    assert stock_of(db_session, product.id) == 13

    db_session.refresh(purchase)
    assert purchase.total_amount == Decimal("6.00")


def test_sale_product_switch_moves_stock(db_session, product, other_product, sale):
    detail = stock_reconciler.insert_line_item(db_session, SALE, sale.id, product.id, 4, Decimal("5.00"))
    assert stock_of(db_session, product.id) == 6

    stock_reconciler.update_line_item(db_session, SALE, detail.id, sale.id, other_product.id, 2, Decimal("5.00"))

    assert stock_of(db_session, product.id) == 10
    assert stock_of(db_session, other_product.id) == 2


def test_sale_product_switch_rolls_back_when_target_is_short(db_session, product, other_product, sale):
    detail = stock_reconciler.insert_line_item(db_session, SALE, sale.id, product.id, 4, Decimal("5.00"))

    with pytest.raises(InsufficientStockError):
        stock_reconciler.update_line_item(
            db_session, SALE, detail.id, sale.id, other_product.id, 5, Decimal("5.00")
        )

    assert stock_of(db_session, product.id) == 6
    assert stock_of(db_session, other_product.id) == 4
    assert db_session.query(SaleDetail).filter(SaleDetail.id == detail.id).one().product_id == product.id


def test_parent_totals_follow_line_items(db_session, product, other_product, sale):
    sale.discount = Decimal("2.00")
    sale.tax = Decimal("1.50")
    db_session.commit()

    stock_reconciler.insert_line_item(db_session, SALE, sale.id, product.id, 2, Decimal("6.50"))
    second = stock_reconciler.insert_line_item(db_session, SALE, sale.id, other_product.id, 1, Decimal("10.00"))

    db_session.refresh(sale)
    assert sale.total_amount == Decimal("23.00")
    assert sale.net_amount == Decimal("22.50")

    stock_reconciler.delete_line_item(db_session, SALE, second.id)
    db_session.refresh(sale)
    assert sale.total_amount == Decimal("13.00")
    assert sale.net_amount == Decimal("12.50")


def test_moving_line_item_recomputes_both_parents(db_session, product, purchase, supplier, admin_user):
    target = Purchase(supplier_id=supplier.id, user_id=admin_user.id, total_amount=0)
    db_session.add(target)
    db_session.commit()

    detail = stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, product.id, 2, Decimal("3.00"))
    stock_reconciler.update_line_item(db_session, PURCHASE, detail.id, target.id, product.id, 2, Decimal("3.00"))

    db_session.refresh(purchase)
    db_session.refresh(target)
    assert purchase.total_amount == Decimal("0")
    assert target.total_amount == Decimal("6.00")
    assert stock_of(db_session, product.id) == 12


def test_unknown_references_are_rejected(db_session, product, purchase):
    with pytest.raises(NotFoundError):
        stock_reconciler.insert_line_item(db_session, PURCHASE, 999, product.id, 1, Decimal("1.00"))
    with pytest.raises(NotFoundError):
        stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, 999, 1, Decimal("1.00"))
    with pytest.raises(NotFoundError):
        stock_reconciler.delete_line_item(db_session, PURCHASE, 999)

    assert db_session.query(PurchaseDetail).count() == 0


def test_non_positive_quantity_is_rejected(db_session, product, purchase):
    with pytest.raises(InvalidRequestError):
        stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, product.id, 0, Decimal("1.00"))
    assert stock_of(db_session, product.id) == 10


def test_compute_net_amount():
    assert stock_reconciler.compute_net_amount(Decimal("100"), Decimal("10"), Decimal("5")) == Decimal("95")
    assert stock_reconciler.compute_net_amount(None, None, None) == Decimal("0")


def test_reverse_parent_line_items_restores_sold_stock(db_session, product, other_product, sale):
    stock_reconciler.insert_line_item(db_session, SALE, sale.id, product.id, 3, Decimal("1.00"))
    stock_reconciler.insert_line_item(db_session, SALE, sale.id, other_product.id, 4, Decimal("1.00"))

    reversed_count = stock_reconciler.reverse_parent_line_items(db_session, SALE, sale.id)
    db_session.commit()

    assert reversed_count == 2
    assert stock_of(db_session, product.id) == 10
    assert stock_of(db_session, other_product.id) == 4
    assert db_session.query(Sale).count() == 1


def test_purchase_product_switch_floors_old_product(db_session, product, other_product, purchase, sale):
    detail = stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, product.id, 5, Decimal("2.00"))
    stock_reconciler.insert_line_item(db_session, SALE, sale.id, product.id, 13, Decimal("3.00"))
    assert stock_of(db_session, product.id) == 2

    stock_reconciler.update_line_item(
        db_session, PURCHASE, detail.id, purchase.id, other_product.id, 3, Decimal("2.00")
    )

    assert stock_of(db_session, product.id) == 0
    assert stock_of(db_session, other_product.id) == 7
    db_session.refresh(purchase)
    assert purchase.total_amount == Decimal("6.00")


def test_moving_line_item_to_other_parent_and_product(db_session, product, other_product, purchase,
                                                      supplier, admin_user):
    target = Purchase(supplier_id=supplier.id, user_id=admin_user.id, total_amount=0)
    db_session.add(target)
    db_session.commit()

    detail = stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, product.id, 2, Decimal("3.00"))
    assert stock_of(db_session, product.id) == 12

    stock_reconciler.update_line_item(
        db_session, PURCHASE, detail.id, target.id, other_product.id, 3, Decimal("1.50")
    )

    db_session.refresh(purchase)
    db_session.refresh(target)
    assert purchase.total_amount == Decimal("0")
    assert target.total_amount == Decimal("4.50")
    assert stock_of(db_session, product.id) == 10
    assert stock_of(db_session, other_product.id) == 7


def test_amounts_are_rounded_to_cents(db_session, product, purchase):
    detail = stock_reconciler.insert_line_item(db_session, PURCHASE, purchase.id, product.id, 3, Decimal("0.335"))

    assert detail.unit_cost == Decimal("0.34")
    assert detail.sub_total == Decimal("1.02")
    db_session.refresh(purchase)
    assert purchase.total_amount == Decimal("1.02")


def test_stock_primitives_return_new_level(db_session, product):
    assert stock_reconciler.increase_stock(db_session, product.id, 5) == 15
    assert stock_reconciler.decrease_stock_checked(db_session, product.id, 6) == 9
    assert stock_reconciler.decrease_stock_floored(db_session, product.id, 4) == 5
    assert stock_reconciler.decrease_stock_floored(db_session, product.id, 8) == 0
    assert stock_of(db_session, product.id) == 0
    db_session.rollback()


def _assert_parent_totals(db, kind, parent_ids):
    for parent_id in parent_ids:
        parent = db.query(kind.parent_model).filter(kind.parent_model.id == parent_id).one()
        subtotals = db.query(kind.model.sub_total).filter(kind.parent_column == parent_id).all()
        assert parent.total_amount == sum((row[0] for row in subtotals), Decimal("0"))


def test_random_ledger_sequence_keeps_invariants(db_session, product, other_product, purchase, sale,
                                                 supplier, admin_user):
    """Stock mirrors the ledger and parent totals follow their line items across random edits."""
    rng = random.Random(20261019)

    second_purchase = Purchase(supplier_id=supplier.id, user_id=admin_user.id, total_amount=0)
    second_sale = Sale(user_id=admin_user.id, total_amount=0, discount=0, tax=0, net_amount=0)
    db_session.add_all([second_purchase, second_sale])
    db_session.commit()

    parents = {PURCHASE: [purchase.id, second_purchase.id], SALE: [sale.id, second_sale.id]}
    product_ids = [product.id, other_product.id]
    prices = [Decimal("0.75"), Decimal("2.50"), Decimal("4.00")]

    expected = {product.id: 10, other_product.id: 4}
    # line item id -> (kind, product id, quantity)
    lines = {}

    def apply(kind, product_id, quantity, stock):
        if kind is PURCHASE:
            stock[product_id] += quantity
            return True
        if stock[product_id] < quantity:
            return False
        stock[product_id] -= quantity
        return True

    def reverse(kind, product_id, quantity, stock):
        if kind is PURCHASE:
            stock[product_id] = max(0, stock[product_id] - quantity)
        else:
            stock[product_id] += quantity

    for _ in range(200):
        kind = rng.choice([PURCHASE, SALE])
        owned = [line_id for line_id, line in lines.items() if line[0] is kind]
        action = rng.choice(["insert", "insert", "update", "delete"]) if owned else "insert"
        product_id = rng.choice(product_ids)
        quantity = rng.randint(1, 6)
        parent_id = rng.choice(parents[kind])
        price = rng.choice(prices)

        if action == "insert":
            trial = dict(expected)
            if apply(kind, product_id, quantity, trial):
                item = stock_reconciler.insert_line_item(db_session, kind, parent_id, product_id, quantity, price)
                lines[item.id] = (kind, product_id, quantity)
                expected = trial
            else:
                with pytest.raises(InsufficientStockError):
                    stock_reconciler.insert_line_item(db_session, kind, parent_id, product_id, quantity, price)

        elif action == "update":
            line_id = rng.choice(owned)
            _, old_product_id, old_quantity = lines[line_id]
            trial = dict(expected)
            if old_product_id != product_id:
                reverse(kind, old_product_id, old_quantity, trial)
                accepted = apply(kind, product_id, quantity, trial)
            elif quantity > old_quantity:
                accepted = apply(kind, product_id, quantity - old_quantity, trial)
            else:
                reverse(kind, product_id, old_quantity - quantity, trial)
                accepted = True

            if accepted:
                stock_reconciler.update_line_item(
                    db_session, kind, line_id, parent_id, product_id, quantity, price
                )
                lines[line_id] = (kind, product_id, quantity)
                expected = trial
            else:
                with pytest.raises(InsufficientStockError):
                    stock_reconciler.update_line_item(
                        db_session, kind, line_id, parent_id, product_id, quantity, price
                    )

        else:
            line_id = rng.choice(owned)
            _, old_product_id, old_quantity = lines.pop(line_id)
            stock_reconciler.delete_line_item(db_session, kind, line_id)
            reverse(kind, old_product_id, old_quantity, expected)

        db_session.expire_all()
        for pid in product_ids:
            assert stock_of(db_session, pid) == expected[pid]
            assert expected[pid] >= 0
        _assert_parent_totals(db_session, PURCHASE, parents[PURCHASE])
        _assert_parent_totals(db_session, SALE, parents[SALE])
