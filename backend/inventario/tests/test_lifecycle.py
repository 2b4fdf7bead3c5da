import pytest
from sqlalchemy import event

from conftest import create_product, create_user, equipment_payload
from inventario.core.errors import ConflictError, NotFoundError, ValidationError
from inventario.database.session import SessionLocal
from inventario.models.equipment import DEPLOYED, IN_STOCK, Equipment
from inventario.services import lifecycle, movement_ledger
from inventario.services.equipment_registry import (
    EquipmentEvents,
    create_equipment,
    delete_equipment,
    get_equipment,
)


def test_out_conflict_then_in_with_notes(db_session, product):
    first = create_user(db_session, "tecnico_um")
    second = create_user(db_session, "tecnico_dois")
    equipment = create_equipment(db_session, equipment_payload(product.id))
    equipment_id = equipment.id

    entry = lifecycle.request_movement(db_session, equipment_id, "OUT", first.id)
    assert entry.type == "OUT"
    assert entry.user_id == first.id
    assert get_equipment(db_session, equipment_id).status == DEPLOYED

    with pytest.raises(ConflictError) as exc_info:
        lifecycle.request_movement(db_session, equipment_id, "OUT", second.id)
    assert exc_info.value.message == "Este equipamento já está implantado"
    assert len(movement_ledger.list_for(db_session, equipment_id)) == 1

    returned = lifecycle.request_movement(db_session, equipment_id, "IN", first.id, notes="returned")
    assert returned.notes == "returned"
    assert get_equipment(db_session, equipment_id).status == IN_STOCK

    history = movement_ledger.history(db_session, equipment_id)
    assert [item.type for item in history] == ["OUT", "IN"]
    assert [item.user_id for item in history] == [first.id, first.id]
    assert len(history) == 2
    assert history[1].notes == "returned"


def test_in_on_stocked_equipment_is_rejected_without_entry(db_session, product, operator_user):
    equipment = create_equipment(db_session, equipment_payload(product.id))

    with pytest.raises(ConflictError) as exc_info:
        lifecycle.request_movement(db_session, equipment.id, "IN", operator_user.id)

    assert exc_info.value.message == "Este equipamento já está em estoque"
    assert get_equipment(db_session, equipment.id).status == IN_STOCK
    assert movement_ledger.list_for(db_session, equipment.id) == []


def test_movement_type_is_case_insensitive(db_session, product, operator_user):
    equipment = create_equipment(db_session, equipment_payload(product.id))

    entry = lifecycle.request_movement(db_session, equipment.id, " out ", operator_user.id)

    assert entry.type == "OUT"


def test_invalid_movement_type_is_rejected(db_session, product, operator_user):
    equipment = create_equipment(db_session, equipment_payload(product.id))

    with pytest.raises(ValidationError) as exc_info:
        lifecycle.request_movement(db_session, equipment.id, "TRANSFER", operator_user.id)

    assert exc_info.value.errors[0].field == "type"
    assert movement_ledger.list_for(db_session, equipment.id) == []


def test_unknown_equipment_is_not_found(db_session, operator_user):
    with pytest.raises(NotFoundError):
        lifecycle.request_movement(db_session, 999, "OUT", operator_user.id)
    assert movement_ledger.list_all(db_session) == []


def test_stale_read_loses_race_without_duplicate_entry(db_session, product, operator_user):
    equipment = create_equipment(db_session, equipment_payload(product.id))
    equipment_id = equipment.id

    stale_session = SessionLocal()
    try:
        stale = stale_session.query(Equipment).filter(Equipment.id == equipment_id).first()
        assert stale.status == IN_STOCK

        lifecycle.request_movement(db_session, equipment_id, "OUT", operator_user.id)

        # A sessao antiga ainda enxerga IN_STOCK no mapa de identidade.
        assert stale.status == IN_STOCK
        with pytest.raises(ConflictError) as exc_info:
            lifecycle.request_movement(stale_session, equipment_id, "OUT", operator_user.id)
        assert exc_info.value.message == "Este equipamento já está implantado"
    finally:
        stale_session.close()

    db_session.expire_all()
    assert get_equipment(db_session, equipment_id).status == DEPLOYED
    assert len(movement_ledger.list_for(db_session, equipment_id)) == 1


def test_ledger_replay_matches_current_status(db_session, operator_user):
    product = create_product(db_session, name="Roteador")
    first = create_equipment(db_session, equipment_payload(product.id, "01"))
    second = create_equipment(db_session, equipment_payload(product.id, "02"))
    untouched = create_equipment(db_session, equipment_payload(product.id, "03"))
    ids = [first.id, second.id, untouched.id]

    for movement_type in ("OUT", "IN", "OUT"):
        lifecycle.request_movement(db_session, ids[0], movement_type, operator_user.id)
    for movement_type in ("OUT", "IN"):
        lifecycle.request_movement(db_session, ids[1], movement_type, operator_user.id)

    for equipment_id in ids:
        entries = movement_ledger.history(db_session, equipment_id)
        assert movement_ledger.replay_status(entries) == get_equipment(db_session, equipment_id).status


def test_replay_detects_broken_alternation():
    class Entry:
        def __init__(self, movement_type):
            self.type = movement_type

    assert movement_ledger.replay_status([]) == IN_STOCK
    assert movement_ledger.replay_status([Entry("OUT"), Entry("IN")]) == IN_STOCK
    assert movement_ledger.replay_status([Entry("OUT"), Entry("OUT")]) is None
    assert movement_ledger.replay_status([Entry("IN")]) is None


def test_listeners_receive_updated_snapshot(db_session, product, operator_user):
    equipment = create_equipment(db_session, equipment_payload(product.id))
    events = EquipmentEvents()
    received = []
    unsubscribe = events.subscribe(received.append)

    lifecycle.request_movement(db_session, equipment.id, "OUT", operator_user.id, events=events)

    assert len(received) == 1
    assert received[0].id == equipment.id
    assert received[0].status == DEPLOYED
    assert received[0].product_name == product.name

    unsubscribe()
    lifecycle.request_movement(db_session, equipment.id, "IN", operator_user.id, events=events)
    assert len(received) == 1


def test_failing_listener_does_not_undo_movement(db_session, product, operator_user):
    equipment = create_equipment(db_session, equipment_payload(product.id))
    events = EquipmentEvents()

    def broken(snapshot):
        raise RuntimeError("falha no assinante")

    events.subscribe(broken)
    lifecycle.request_movement(db_session, equipment.id, "OUT", operator_user.id, events=events)

    assert get_equipment(db_session, equipment.id).status == DEPLOYED


def test_deleting_equipment_keeps_its_history(db_session, product, operator_user):
    equipment = create_equipment(db_session, equipment_payload(product.id))
    equipment_id = equipment.id
    lifecycle.request_movement(db_session, equipment_id, "OUT", operator_user.id)

    delete_equipment(db_session, equipment_id)

    with pytest.raises(NotFoundError):
        get_equipment(db_session, equipment_id)
    assert len(movement_ledger.list_for(db_session, equipment_id)) == 1


def test_unit_deleted_right_after_commit_keeps_the_movement(db_session, product, operator_user):
    equipment = create_equipment(db_session, equipment_payload(product.id))
    equipment_id = equipment.id
    events = EquipmentEvents()
    received = []
    events.subscribe(received.append)

    def delete_from_another_session(session):
        other = SessionLocal()
        try:
            other.query(Equipment).filter(Equipment.id == equipment_id).delete(synchronize_session=False)
            other.commit()
        finally:
            other.close()

    event.listen(db_session, "after_commit", delete_from_another_session, once=True)

    entry = lifecycle.request_movement(db_session, equipment_id, "OUT", operator_user.id, events=events)

    assert entry.type == "OUT"
    assert received == []
    assert len(movement_ledger.list_for(db_session, equipment_id)) == 1
    with pytest.raises(NotFoundError):
        get_equipment(db_session, equipment_id)
