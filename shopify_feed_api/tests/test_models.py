"""Tests for parsing GraphQL product payloads."""

import pytest

from app.core.exceptions import ProtocolError
from app.core.feed.models import FeedItem, ProductPage, RawProduct, RawVariant
from factories import page_data, product_node, variant_node


def test_product_page_parses_nodes_and_cursor():
    page = ProductPage.from_data(page_data([product_node(pid=1), product_node(pid=2)], has_next=True, cursor="abc"))

    assert [p.id for p in page.products] == ["gid://shopify/Product/1", "gid://shopify/Product/2"]
    assert page.has_next_page is True
    assert page.end_cursor == "abc"


@pytest.mark.parametrize("data", [
    {},
    {"products": None},
    {"products": {"edges": []}},
    {"products": {"pageInfo": {"hasNextPage": False}}},
    {"products": {"pageInfo": {"hasNextPage": True, "endCursor": None}, "edges": []}},
])
def test_malformed_page_raises_protocol_error(data):
    with pytest.raises(ProtocolError):
        ProductPage.from_data(data)


def test_product_images_unique_and_ordered():
    node = product_node(images=["https://c/1.jpg", "https://c/2.jpg", "https://c/1.jpg"])
    product = RawProduct.from_node(node)
    assert product.images == ["https://c/1.jpg", "https://c/2.jpg"]


def test_translations_first_key_wins_and_blank_is_absent():
    node = product_node()
    node["translations"] = [
        {"key": "title", "value": "Aventus CZ"},
        {"key": "title", "value": "ignored"},
        {"key": "body_html", "value": ""},
    ]
    product = RawProduct.from_node(node)
    assert product.translation("title") == "Aventus CZ"
    assert product.translation("body_html") is None
    assert product.translation("description_html") is None


def test_variant_parsing():
    node = variant_node(vid=5, sku="AV-5", barcode="123", qty=2, amount="99.5",
                        options=[{"name": "Size", "value": "10 ml"}])
    variant = RawVariant.from_node(node)

    assert variant.id == "gid://shopify/ProductVariant/5"
    assert variant.inventory_quantity == 2
    assert variant.selected_options == [("Size", "10 ml")]
    assert variant.price.amount == "99.5"
    assert variant.price.currency_code == "CZK"


@pytest.mark.parametrize("qty", [None, True, "3", 2.5])
def test_non_integer_inventory_is_absent(qty):
    assert RawVariant.from_node(variant_node(qty=qty)).inventory_quantity is None


def test_missing_contextual_price():
    node = variant_node(amount=None)
    assert RawVariant.from_node(node).price is None
    node["contextualPricing"] = None
    assert RawVariant.from_node(node).price is None


def test_node_without_id_raises():
    with pytest.raises(ProtocolError):
        RawProduct.from_node({"title": "no id"})


def test_feed_item_blank_optionals_become_none():
    item = FeedItem(item_id="1", manufacturer="", ean="", product_no="0", item_group_id="")
    assert item.manufacturer is None
    assert item.ean is None
    assert item.item_group_id is None
    assert item.product_no == "0"
