import pytest

from conftest import create_product, equipment_payload
from inventario.core.errors import NotFoundError, ValidationError
from inventario.models.equipment import DEPLOYED, IN_STOCK
from inventario.services import lifecycle
from inventario.services.catalog import delete_product
from inventario.services.equipment_registry import (
    PRODUCT_NOT_FOUND_LABEL,
    create_equipment,
    get_equipment,
    list_equipment,
    update_equipment,
)


def test_create_forces_in_stock_and_normalizes_identifiers(db_session, product):
    payload = equipment_payload(product.id, status=DEPLOYED)

    equipment = create_equipment(db_session, payload)

    assert equipment.status == IN_STOCK
    assert equipment.mac_address == "AA:BB:CC:DD:EE:01"
    assert equipment.gpon_sn == "HWTC0001"
    assert equipment.customer == "Cliente Teste"


def test_create_reports_every_missing_field(db_session):
    with pytest.raises(ValidationError) as exc_info:
        create_equipment(db_session, {"product_id": None, "mac_address": "", "gpon_sn": " ", "customer": ""})

    fields = {item.field for item in exc_info.value.errors}
    assert fields == {"product_id", "mac_address", "gpon_sn", "customer"}


def test_create_requires_existing_product(db_session):
    with pytest.raises(NotFoundError):
        create_equipment(db_session, equipment_payload(4242))


def test_update_rejects_status_changes(db_session, product):
    equipment = create_equipment(db_session, equipment_payload(product.id))

    with pytest.raises(ValidationError) as exc_info:
        update_equipment(db_session, equipment.id, {"status": DEPLOYED})

    assert exc_info.value.errors[0].field == "status"
    assert get_equipment(db_session, equipment.id).status == IN_STOCK


def test_update_changes_descriptive_fields_only(db_session, product, operator_user):
    equipment = create_equipment(db_session, equipment_payload(product.id))
    lifecycle.request_movement(db_session, equipment.id, "OUT", operator_user.id)

    updated = update_equipment(
        db_session,
        equipment.id,
        {"customer": "Novo  Cliente", "description": "", "status": None},
    )

    assert updated.customer == "Novo Cliente"
    assert updated.description is None
    assert updated.status == DEPLOYED


def test_update_unknown_equipment_is_not_found(db_session):
    with pytest.raises(NotFoundError):
        update_equipment(db_session, 77, {"customer": "Alguem"})


def test_listing_keeps_units_of_deleted_products(db_session):
    kept = create_product(db_session, name="ONU")
    removed = create_product(db_session, name="Modem antigo")
    create_equipment(db_session, equipment_payload(kept.id, "01"))
    orphan = create_equipment(db_session, equipment_payload(removed.id, "02"))
    orphan_id = orphan.id

    delete_product(db_session, removed.id)

    rows = {row.id: row for row in list_equipment(db_session)}
    assert len(rows) == 2
    assert rows[orphan_id].product_name == PRODUCT_NOT_FOUND_LABEL


def test_candidates_follow_movement_type(db_session, product, operator_user):
    stocked = create_equipment(db_session, equipment_payload(product.id, "01"))
    deployed = create_equipment(db_session, equipment_payload(product.id, "02"))
    stocked_id, deployed_id = stocked.id, deployed.id
    lifecycle.request_movement(db_session, deployed_id, "OUT", operator_user.id)

    assert [row.id for row in list_equipment(db_session, candidates_for="OUT")] == [stocked_id]
    assert [row.id for row in list_equipment(db_session, candidates_for="in")] == [deployed_id]
    assert [row.id for row in list_equipment(db_session, status_filter="deployed")] == [deployed_id]


def test_invalid_filters_are_rejected(db_session):
    with pytest.raises(ValidationError):
        list_equipment(db_session, status_filter="LOST")
    with pytest.raises(ValidationError):
        list_equipment(db_session, candidates_for="MOVE")


def test_search_matches_identifiers_customer_description_and_product(db_session):
    modem = create_product(db_session, name="Modem Fibra")
    router = create_product(db_session, name="Roteador Wifi")
    by_product = create_equipment(db_session, equipment_payload(modem.id, "01", customer="Ana"))
    by_mac = create_equipment(db_session, equipment_payload(router.id, "02", customer="Bruno"))
    by_customer = create_equipment(
        db_session,
        equipment_payload(router.id, "03", customer="Condominio Central", description="Torre B"),
    )
    ids = {"product": by_product.id, "mac": by_mac.id, "customer": by_customer.id}

    def found(term):
        return {row.id for row in list_equipment(db_session, q=term)}

    assert found("fibra") == {ids["product"]}
    assert found("aa:bb:cc:dd:ee:02") == {ids["mac"]}
    assert found("hwtc0003") == {ids["customer"]}
    assert found("condominio") == {ids["customer"]}
    assert found("torre b") == {ids["customer"]}
    assert found("   ") == set(ids.values())
    assert found("inexistente") == set()


def test_search_combines_with_candidate_filter(db_session, operator_user):
    router = create_product(db_session, name="Roteador Wifi")
    stocked = create_equipment(db_session, equipment_payload(router.id, "01"))
    deployed = create_equipment(db_session, equipment_payload(router.id, "02"))
    stocked_id, deployed_id = stocked.id, deployed.id
    lifecycle.request_movement(db_session, deployed_id, "OUT", operator_user.id)

    rows = list_equipment(db_session, candidates_for="OUT", q="roteador")

    assert [row.id for row in rows] == [stocked_id]
    assert deployed_id not in {row.id for row in rows}


def test_search_keeps_units_of_deleted_products_reachable(db_session):
    removed = create_product(db_session, name="Modem antigo")
    orphan = create_equipment(db_session, equipment_payload(removed.id, "09", customer="Cliente Orfao"))
    orphan_id = orphan.id
    delete_product(db_session, removed.id)

    rows = list_equipment(db_session, q="orfao")

    assert [(row.id, row.product_name) for row in rows] == [(orphan_id, PRODUCT_NOT_FOUND_LABEL)]
