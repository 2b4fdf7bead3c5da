import pytest

from conftest import create_product
from inventario.core.errors import ConflictError, NotFoundError, ValidationError
from inventario.services import catalog, stock


def test_in_and_out_adjust_quantity(db_session, product, operator_user):
    stock.append_movement(db_session, product.id, "IN", 5, operator_user.id)
    stock.append_movement(db_session, product.id, "out", 12, operator_user.id)

    assert catalog.get_product(db_session, product.id).quantity == 3
    movements = stock.list_movements(db_session, product_id=product.id)
    assert [(item.type, item.quantity) for item in movements] == [("OUT", 12), ("IN", 5)]


def test_out_beyond_quantity_is_rejected_and_nothing_changes(db_session, product, operator_user):
    with pytest.raises(ConflictError) as exc_info:
        stock.append_movement(db_session, product.id, "OUT", 11, operator_user.id)

    assert exc_info.value.message == "Estoque insuficiente"
    assert catalog.get_product(db_session, product.id).quantity == 10
    assert stock.list_movements(db_session) == []


def test_out_of_entire_stock_is_allowed(db_session, operator_user):
    product = create_product(db_session, quantity=4)

    stock.append_movement(db_session, product.id, "OUT", 4, operator_user.id)

    assert catalog.get_product(db_session, product.id).quantity == 0


@pytest.mark.parametrize("quantity", [0, -3])
def test_quantity_must_be_positive(db_session, product, operator_user, quantity):
    with pytest.raises(ValidationError) as exc_info:
        stock.append_movement(db_session, product.id, "IN", quantity, operator_user.id)
    assert exc_info.value.message == "Informe uma quantidade válida"


def test_unknown_product_is_not_found(db_session, operator_user):
    with pytest.raises(NotFoundError):
        stock.append_movement(db_session, 99, "IN", 1, operator_user.id)


def test_product_validation_lists_required_fields(db_session):
    with pytest.raises(ValidationError) as exc_info:
        catalog.create_product(db_session, {"name": "", "description": "", "quantity": -1, "category": ""})

    fields = [item.field for item in exc_info.value.errors]
    assert fields == ["name", "description", "quantity", "category"]


def test_categories_are_listed_by_name(db_session):
    catalog.create_category(db_session, "Rede")
    catalog.create_category(db_session, "  Cabos   opticos ")

    assert [row.name for row in catalog.list_categories(db_session)] == ["Cabos opticos", "Rede"]

    with pytest.raises(ValidationError):
        catalog.create_category(db_session, "   ")


def test_category_search_ignores_case(db_session):
    catalog.create_category(db_session, "Rede")
    catalog.create_category(db_session, "Cabos de rede")
    catalog.create_category(db_session, "Ferramentas")

    assert [row.name for row in catalog.list_categories(db_session, q="REDE")] == ["Cabos de rede", "Rede"]
    assert [row.name for row in catalog.list_categories(db_session, q="ferr")] == ["Ferramentas"]
    assert len(catalog.list_categories(db_session, q="")) == 3
