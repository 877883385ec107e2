import sqlite3
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from storefront.data.database import Base
from storefront.data.models import ProductModel, OrderModel, OrderItemModel
from storefront.repos.product_repo import ProductRepo
from storefront.services.product_service import ProductService
from storefront.utils.money import to_price


def test_inactive_products_never_listed(db, make_product):
    visible = make_product(name="visible")
    hidden = make_product(name="hidden", active=False)
    svc = ProductService(db)

    ids = [p["id"] for p in svc.list_active_products()]

    assert visible.id in ids
    assert hidden.id not in ids
    assert svc.get_product(hidden.id) is None
    assert svc.get_product("missing") is None
    assert svc.get_product(visible.id)["name"] == "visible"


def test_active_products_newest_first(db, make_product):
    first = make_product(name="old")
    second = make_product(name="new")

    products = ProductService(db).list_active_products()

    assert [p["id"] for p in products] == [second.id, first.id]
    assert products[0]["price"] == Decimal("10000")


def test_pagination_books_price_asc(db, make_product):
    for price in ["30000", "10000", "50000", "20000", "40000"]:
        make_product(category="books", price=price)
    make_product(category="food", price="1000")

    page = ProductService(db).list_with_pagination(category="books", page=1, limit=12, sort_by="price-asc")

    assert page["total_count"] == 5
    assert page["total_pages"] == 1
    assert page["current_page"] == 1
    assert [p["price"] for p in page["products"]] == [
        Decimal(v) for v in ["10000", "20000", "30000", "40000", "50000"]
    ]


def test_pagination_clamps_page_and_limit(db, make_product):
    for _ in range(5):
        make_product()
    svc = ProductService(db)

    overshoot = svc.list_with_pagination(page=9, limit=2)
    assert overshoot["total_pages"] == 3
    assert overshoot["current_page"] == 3
    assert len(overshoot["products"]) == 1

    low = svc.list_with_pagination(page=0, limit=0)
    assert low["current_page"] == 1
    assert low["total_pages"] == 5
    assert len(low["products"]) == 1


def test_pagination_empty_catalog_has_one_page(db):
    page = ProductService(db).list_with_pagination(category="beauty", page=3)

    assert page == {"products": [], "total_count": 0, "current_page": 1, "total_pages": 1}


def test_pagination_price_desc_and_uncategorized(db, make_product):
    make_product(price="100")
    make_product(price="300")
    make_product(price="200", category="home")
    svc = ProductService(db)

    page = svc.list_with_pagination(sort_by="price-desc")
    assert [p["price"] for p in page["products"]] == [Decimal("300"), Decimal("200"), Decimal("100")]

    uncategorized = svc.list_with_pagination(category="uncategorized")
    assert uncategorized["total_count"] == 2


def test_popular_without_sales_returns_recent(db, make_product):
    products = [make_product(name=f"p{n}") for n in range(5)]
    make_product(name="inactive", active=False)

    popular = ProductService(db).get_popular_products(limit=3)

    assert [p["id"] for p in popular] == [products[4].id, products[3].id, products[2].id]


def test_popular_ranks_by_sales_and_backfills(db, make_product, record_sale):
    a = make_product(name="a")
    b = make_product(name="b")
    c = make_product(name="c")
    d = make_product(name="d")
    hidden = make_product(name="hidden", active=False)
    record_sale(a, 2)
    record_sale(b, 5)
    record_sale(a, 1)
    record_sale(hidden, 50)

    popular = ProductService(db).get_popular_products(limit=4)

    # b(5), a(3), then recent unsold: d, c
    assert [p["id"] for p in popular] == [b.id, a.id, d.id, c.id]


def test_popular_tie_break_is_deterministic(db, make_product, record_sale):
    older = make_product(name="older")
    newer = make_product(name="newer")
    record_sale(older, 4)
    record_sale(newer, 4)
    svc = ProductService(db)

    first = [p["id"] for p in svc.get_popular_products(limit=2)]
    second = [p["id"] for p in svc.get_popular_products(limit=2)]

    assert first == second == [newer.id, older.id]


def test_popular_falls_back_when_aggregation_fails(db, make_product, record_sale, monkeypatch):
    a = make_product(name="a")
    b = make_product(name="b")
    record_sale(a, 10)

    def broken(self):
        raise SQLAlchemyError("aggregation unavailable")

    monkeypatch.setattr(ProductRepo, "aggregate_sales", broken)

    popular = ProductService(db).get_popular_products(limit=2)

    assert [p["id"] for p in popular] == [b.id, a.id]


def test_popular_backfill_failure_returns_ranked_only(db, make_product, record_sale, monkeypatch):
    a = make_product(name="a")
    make_product(name="b")
    record_sale(a, 1)

    def broken(self, *args, **kwargs):
        raise SQLAlchemyError("backfill unavailable")

    monkeypatch.setattr(ProductRepo, "list_recent_excluding", broken)

    popular = ProductService(db).get_popular_products(limit=2)

    assert [p["id"] for p in popular] == [a.id]


def test_popular_pagination_pads_with_unsold(db, make_product, record_sale):
    p1 = make_product(name="p1")
    p2 = make_product(name="p2")
    p3 = make_product(name="p3")
    p4 = make_product(name="p4")
    p5 = make_product(name="p5")
    record_sale(p1, 3)
    record_sale(p2, 7)
    record_sale(p3, 1)
    svc = ProductService(db)

    first = svc.list_with_pagination(page=1, limit=2, sort_by="popular")
    second = svc.list_with_pagination(page=2, limit=2, sort_by="popular")
    third = svc.list_with_pagination(page=3, limit=2, sort_by="popular")

    assert [p["id"] for p in first["products"]] == [p2.id, p1.id]
    assert [p["id"] for p in second["products"]] == [p3.id, p5.id]
    assert [p["id"] for p in third["products"]] == [p4.id]
    assert third["total_pages"] == 3


def test_to_price_degrades_to_zero():
    assert to_price("12.50") == Decimal("12.50")
    assert to_price(3) == Decimal("3")
    assert to_price("not a price") == Decimal("0")
    assert to_price(None) == Decimal("0")
    assert to_price("NaN") == Decimal("0")


def test_seed_fills_empty_catalog_once(db, session_factory):
    from storefront.data.seed import DEMO_PRODUCTS, seed

    seed(session_factory)
    seed(session_factory)

    svc = ProductService(db)
    assert svc.list_with_pagination()["total_count"] == len(DEMO_PRODUCTS)
    assert svc.list_active_products()[0]["name"] == DEMO_PRODUCTS[0][0]


def test_popular_survives_dropped_connection_during_aggregation(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'store.db'}")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()

    older = ProductModel(name="A", price=Decimal("1000"), stock_quantity=5,
                         created_at=datetime(2025, 1, 1, tzinfo=timezone.utc))
    newer = ProductModel(name="B", price=Decimal("2000"), stock_quantity=5,
                         created_at=datetime(2025, 1, 2, tzinfo=timezone.utc))
    session.add_all([older, newer])
    session.flush()
    order = OrderModel(user_id="someone", status="confirmed", total_amount=Decimal("3000"))
    session.add(order)
    session.flush()
    session.add(OrderItemModel(order_id=order.id, product_id=older.id, product_name="A",
                               quantity=3, price=Decimal("1000")))
    session.commit()

    def is_aggregation(statement):
        return "sum(order_items.quantity)" in (statement or "")

    @event.listens_for(engine, "do_execute")
    def drop_connection(cursor, statement, parameters, context):
        if is_aggregation(statement):
            raise sqlite3.OperationalError("server closed the connection unexpectedly")

    @event.listens_for(engine, "handle_error")
    def mark_disconnect(ctx):
        if is_aggregation(ctx.statement):
            ctx.is_disconnect = True

    try:
        popular = ProductService(session).get_popular_products(limit=2)
        assert [p["name"] for p in popular] == ["B", "A"]

        page = ProductService(session).list_with_pagination(page=1, limit=2, sort_by="popular")
        assert [p["name"] for p in page["products"]] == ["B", "A"]
    finally:
        session.close()
        engine.dispose()


def test_uncategorized_rows_read_as_no_category(db, make_product):
    make_product(name="book", category="books")
    legacy = make_product(name="legacy", category="uncategorized")
    plain = make_product(name="plain")
    svc = ProductService(db)

    listed = {p["id"]: p["category"] for p in svc.list_active_products()}
    assert listed[legacy.id] is None
    assert listed[plain.id] is None

    uncategorized = svc.list_with_pagination(category="uncategorized")
    assert uncategorized["total_count"] == 2
    assert {p["id"] for p in uncategorized["products"]} == {legacy.id, plain.id}

    books = svc.list_with_pagination(category="books")
    assert [p["name"] for p in books["products"]] == ["book"]
