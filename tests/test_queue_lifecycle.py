from datetime import date

import pytest

from app.core.exceptions import ConcurrencyError, InvalidTransitionError, NotFoundError, ValidationError
from app.core.lifecycle import QueueStatus, StaffRole, VisitType
from app.db.models import User
from app.schemas.queue import QueueAdmit
from app.schemas.visit import VisitCreate, VisitUpdate
from app.services.isolation_service import IsolationValidator
from app.services.queue_service import QueueService
from app.services.visit_service import VisitService


@pytest.fixture
def queue(service):
    return service(QueueService)


@pytest.fixture
def visits(service):
    return service(VisitService)


async def test_example_day(queue, visits, clinic, other_clinic, doctor, patient, second_patient):
    today = date.today()
    item1, visit1 = await queue.admit(clinic.id, QueueAdmit(
        patient_id=patient.id, doctor_id=doctor.id, visit_type=VisitType.CONSULTATION, visit_date=today,
    ))
    assert item1.queue_number == 1
    assert item1.status == "waiting"
    assert visit1.status == "Scheduled"
    assert item1.visit_id == visit1.id

    item2, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=second_patient.id, doctor_id=doctor.id))
    assert item2.queue_number == 2

    await queue.set_status(clinic.id, item1.id, "serving")
    await queue.set_status(clinic.id, item1.id, "completed")
    assert (await visits.get_visit(clinic.id, visit1.id)).visit.status == "Completed"

    with pytest.raises(NotFoundError):
        await queue.set_status(other_clinic.id, item1.id, "completed")


async def test_admission_without_doctor_creates_no_visit(queue, clinic, patient):
    item, visit = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id))

    assert visit is None
    assert item.visit_id is None
    assert item.doctor_id is None


async def test_admission_reuses_existing_visit(queue, visits, clinic, doctor, patient, second_patient):
    visit = await visits.create_visit(
        clinic.id,
        VisitCreate(patient_id=patient.id, doctor_id=doctor.id, visit_date=date.today(), visit_type=VisitType.DENTAL),
    )

    with pytest.raises(ValidationError):
        await queue.admit(clinic.id, QueueAdmit(patient_id=second_patient.id, visit_id=visit.id))

    item, linked = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, visit_id=visit.id))
    assert linked.id == visit.id
    assert item.doctor_id == doctor.id
    assert item.visit_type == "Dental"

    # Already waiting in the queue
    with pytest.raises(InvalidTransitionError):
        await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, visit_id=visit.id))


async def test_terminal_visit_cannot_be_admitted(queue, visits, clinic, doctor, patient):
    visit = await visits.create_visit(
        clinic.id, VisitCreate(patient_id=patient.id, doctor_id=doctor.id, visit_date=date.today()),
    )
    await visits.update_visit(clinic.id, visit.id, VisitUpdate(status="Cancelled"))

    with pytest.raises(InvalidTransitionError):
        await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, visit_id=visit.id))


@pytest.mark.parametrize(
    "path",
    [
        ["serving", "completed"],
        ["serving", "skipped"],
        ["serving", "cancelled"],
        ["cancelled"],
    ],
)
async def test_allowed_paths(queue, clinic, patient, path):
    item, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id))
    for status in path:
        item = await queue.set_status(clinic.id, item.id, status)
    assert item.status == path[-1]
    assert item.finished_at is not None


@pytest.mark.parametrize(
    "path, rejected",
    [
        ([], "completed"),
        ([], "skipped"),
        ([], "waiting"),
        (["serving"], "waiting"),
        (["serving", "completed"], "completed"),
        (["serving", "completed"], "cancelled"),
        (["serving", "skipped"], "serving"),
        (["cancelled"], "waiting"),
    ],
)
async def test_rejected_edges(queue, clinic, patient, path, rejected):
    item, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id))
    for status in path:
        await queue.set_status(clinic.id, item.id, status)

    with pytest.raises(InvalidTransitionError) as exc_info:
        await queue.set_status(clinic.id, item.id, rejected)

    assert exc_info.value.details["to"] == rejected
    stats = await queue.queue_stats(clinic.id)
    assert stats[path[-1] if path else "waiting"] == 1


async def test_unknown_status_is_a_validation_error(queue, clinic, patient):
    item, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id))

    with pytest.raises(ValidationError):
        await queue.set_status(clinic.id, item.id, "boarding")


async def test_only_one_patient_is_served_at_a_time(queue, clinic, patient, second_patient):
    first, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id))
    second, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=second_patient.id))
    await queue.set_status(clinic.id, first.id, "serving")

    with pytest.raises(InvalidTransitionError):
        await queue.set_status(clinic.id, second.id, "serving")

    current = await queue.current_serving(clinic.id)
    assert current.id == first.id
    assert current.called_at is not None


@pytest.mark.parametrize(
    "path, visit_status",
    [
        (["serving", "completed"], "Completed"),
        (["serving", "skipped"], "Cancelled"),
        (["serving", "cancelled"], "Cancelled"),
        (["cancelled"], "Cancelled"),
    ],
)
async def test_terminal_status_cascades_to_visit(queue, visits, clinic, doctor, patient, path, visit_status):
    item, visit = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, doctor_id=doctor.id))
    for status in path:
        await queue.set_status(clinic.id, item.id, status)

    assert (await visits.get_visit(clinic.id, visit.id)).visit.status == visit_status


async def test_failed_cascade_rolls_back_queue_transition(queue, session_factory, clinic, doctor, patient):
    item, visit = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, doctor_id=doctor.id))
    await queue.set_status(clinic.id, item.id, "serving")

    # Visit closed behind the queue's back
    async with session_factory() as session:
        stored = await VisitService(session).isolation.get_visit(clinic.id, visit.id)
        stored.status = "Cancelled"
        await session.commit()

    with pytest.raises(InvalidTransitionError):
        await queue.set_status(clinic.id, item.id, "completed")

    assert (await queue.current_serving(clinic.id)).id == item.id


async def test_visit_status_is_owned_by_active_queue_item(queue, visits, clinic, doctor, patient):
    item, visit = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, doctor_id=doctor.id))

    with pytest.raises(InvalidTransitionError):
        await visits.update_visit(clinic.id, visit.id, VisitUpdate(status="Completed"))
    with pytest.raises(InvalidTransitionError):
        await visits.delete_visit(clinic.id, visit.id)

    # Other fields stay editable
    updated = await visits.update_visit(clinic.id, visit.id, VisitUpdate(chief_complaint="Headache"))
    assert updated.chief_complaint == "Headache"

    await queue.set_status(clinic.id, item.id, "cancelled")
    assert await visits.delete_visit(clinic.id, visit.id) is True


async def test_queue_linked_visit_keeps_patient_and_doctor(queue, visits, seed, clinic, doctor, patient, second_patient):
    colleague = await seed(User(tenant_id=clinic.id, role=StaffRole.DOCTOR.value, name="Dr. Noor", username="noor"))
    item, visit = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, doctor_id=doctor.id))

    with pytest.raises(InvalidTransitionError):
        await visits.update_visit(clinic.id, visit.id, VisitUpdate(patient_id=second_patient.id))
    with pytest.raises(InvalidTransitionError):
        await visits.update_visit(clinic.id, visit.id, VisitUpdate(doctor_id=colleague.id))

    entry = (await queue.todays_queue(clinic.id))[0]
    assert entry.item.id == item.id
    assert entry.visit.patient_id == patient.id
    assert entry.visit.doctor_id == doctor.id

    # Same values are not a change
    unchanged = await visits.update_visit(clinic.id, visit.id, VisitUpdate(patient_id=patient.id, doctor_id=doctor.id))
    assert unchanged.patient_id == patient.id

    await queue.set_status(clinic.id, item.id, "cancelled")
    moved = await visits.update_visit(clinic.id, visit.id, VisitUpdate(doctor_id=colleague.id))
    assert moved.doctor_id == colleague.id


async def test_admission_locks_the_reused_visit(queue, visits, monkeypatch, clinic, doctor, patient):
    visit = await visits.create_visit(
        clinic.id, VisitCreate(patient_id=patient.id, doctor_id=doctor.id, visit_date=date.today()),
    )
    calls = []
    original = IsolationValidator.get_visit

    async def recording_get_visit(self, tenant_id, visit_id, for_update=False):
        calls.append(for_update)
        return await original(self, tenant_id, visit_id, for_update=for_update)

    monkeypatch.setattr(IsolationValidator, "get_visit", recording_get_visit)
    await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, visit_id=visit.id))

    assert calls == [True]


async def test_visit_writes_lock_the_clinic_first(visits, monkeypatch, clinic, doctor, patient):
    visit = await visits.create_visit(
        clinic.id, VisitCreate(patient_id=patient.id, doctor_id=doctor.id, visit_date=date.today()),
    )
    calls = []
    original_lock = IsolationValidator.lock_tenant
    original_get = IsolationValidator.get_visit

    async def recording_lock(self, tenant_id):
        calls.append("clinic")
        return await original_lock(self, tenant_id)

    async def recording_get_visit(self, tenant_id, visit_id, for_update=False):
        calls.append("visit" if for_update else "read")
        return await original_get(self, tenant_id, visit_id, for_update=for_update)

    monkeypatch.setattr(IsolationValidator, "lock_tenant", recording_lock)
    monkeypatch.setattr(IsolationValidator, "get_visit", recording_get_visit)

    await visits.update_visit(clinic.id, visit.id, VisitUpdate(chief_complaint="Fever"))
    assert calls == ["clinic", "visit"]

    calls.clear()
    assert await visits.delete_visit(clinic.id, visit.id) is True
    assert calls[0] == "clinic"


async def test_call_next_completes_current_and_serves_next(queue, visits, clinic, doctor, patient, second_patient):
    first, first_visit = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, doctor_id=doctor.id))
    second, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=second_patient.id))

    completed, serving = await queue.call_next(clinic.id)
    assert completed is None
    assert serving.id == first.id

    completed, serving = await queue.call_next(clinic.id)
    assert completed.id == first.id
    assert completed.status == QueueStatus.COMPLETED.value
    assert serving.id == second.id
    assert (await visits.get_visit(clinic.id, first_visit.id)).visit.status == "Completed"

    completed, serving = await queue.call_next(clinic.id)
    assert completed.id == second.id
    assert serving is None
    assert await queue.current_serving(clinic.id) is None


async def test_todays_queue_and_stats(queue, clinic, doctor, patient, second_patient):
    first, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, doctor_id=doctor.id))
    second, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=second_patient.id))
    await queue.set_status(clinic.id, first.id, "serving")

    entries = await queue.todays_queue(clinic.id)
    assert [entry.item.queue_number for entry in entries] == [1, 2]
    assert entries[0].patient.name == "Maria Lopez"
    assert entries[0].doctor.id == doctor.id
    assert entries[0].visit.status == "Scheduled"
    assert entries[1].doctor is None and entries[1].visit is None

    stats = await queue.queue_stats(clinic.id)
    assert stats == {"waiting": 1, "serving": 1, "completed": 0, "skipped": 0, "cancelled": 0}


async def test_reads_are_repeatable(queue, clinic, doctor, patient, second_patient):
    await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id, doctor_id=doctor.id))
    await queue.admit(clinic.id, QueueAdmit(patient_id=second_patient.id))

    first = [(e.item.id, e.item.status, e.item.queue_number) for e in await queue.todays_queue(clinic.id)]
    second = [(e.item.id, e.item.status, e.item.queue_number) for e in await queue.todays_queue(clinic.id)]
    assert first == second
    assert await queue.queue_stats(clinic.id) == await queue.queue_stats(clinic.id)


async def test_serving_slot_is_enforced_by_the_database(queue, monkeypatch, clinic, patient, second_patient):
    first, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id))
    second, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=second_patient.id))
    await queue.set_status(clinic.id, first.id, "serving")

    # A writer that missed the serving row still hits the partial unique index
    async def nothing_serving(self, tenant_id, day, status):
        return None

    monkeypatch.setattr(QueueService, "_first_with_status", nothing_serving)
    with pytest.raises(ConcurrencyError):
        await queue.set_status(clinic.id, second.id, "serving")

    monkeypatch.undo()
    assert (await queue.current_serving(clinic.id)).id == first.id


async def test_set_status_accepts_enum_members(queue, clinic, patient):
    item, _ = await queue.admit(clinic.id, QueueAdmit(patient_id=patient.id))

    serving = await queue.set_status(clinic.id, item.id, QueueStatus.SERVING)
    assert serving.status == "serving"
    done = await queue.set_status(clinic.id, item.id, QueueStatus.COMPLETED)
    assert done.status == "completed"
