from datetime import date

import pytest
from fastapi import HTTPException

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.lifecycle import StaffRole
from app.db.models import User
from app.core.security import verify_password
from app.schemas.doctor import DoctorCreate, DoctorUpdate
from app.schemas.patient import PatientCreate, PatientUpdate
from app.schemas.queue import QueueAdmit
from app.schemas.staff import StaffCreate
from app.schemas.visit import VisitCreate
from app.services.clinic_service import ClinicService
from app.services.doctor_service import DoctorService
from app.services.patient_service import PatientService
from app.services.queue_service import QueueService
from app.services.staff_service import StaffService
from app.services.visit_service import VisitService
from app.schemas.clinic import ClinicCreate


@pytest.fixture
async def admin(seed, clinic):
    return await seed(User(tenant_id=clinic.id, role=StaffRole.ADMIN.value, name="Admin", username="boss"))


async def test_patients_ordered_by_last_visit(service, clinic, doctor, patient, second_patient):
    patients = service(PatientService)
    newcomer = await patients.create_patient(clinic.id, PatientCreate(name="Nina Gray", phone="555-0300"))
    await service(VisitService).create_visit(
        clinic.id, VisitCreate(patient_id=second_patient.id, doctor_id=doctor.id, visit_date=date(2024, 5, 3)),
    )
    await service(VisitService).create_visit(
        clinic.id, VisitCreate(patient_id=patient.id, doctor_id=doctor.id, visit_date=date(2024, 5, 1)),
    )

    ordered = await patients.get_patients(clinic.id)
    assert [p.id for p in ordered] == [second_patient.id, patient.id, newcomer.id]


async def test_search_by_name_or_phone(service, clinic, patient, second_patient, other_patient):
    patients = service(PatientService)

    assert [p.id for p in await patients.search_patients(clinic.id, "maria")] == [patient.id]
    assert [p.id for p in await patients.search_patients(clinic.id, "0109")] == [second_patient.id]
    # Lena belongs to another clinic
    assert await patients.search_patients(clinic.id, "lena") == []


async def test_get_patient_of_other_clinic(service, clinic, other_patient):
    with pytest.raises(NotFoundError):
        await service(PatientService).get_patient(clinic.id, other_patient.id)


async def test_only_managers_create_doctors(service, clinic, admin, doctor):
    doctors = service(DoctorService)
    payload = DoctorCreate(name="Dr. Kim", username="kim", password="s3cret", specialization="Dentist")

    with pytest.raises(HTTPException) as exc_info:
        await doctors.create_doctor(doctor, payload)
    assert exc_info.value.status_code == 403

    created = await doctors.create_doctor(admin, payload)
    assert created.tenant_id == clinic.id
    assert created.role == "doctor"
    assert created.password_hash != "s3cret"

    with pytest.raises(ValidationError):
        await doctors.create_doctor(admin, payload)
    with pytest.raises(ValidationError):
        await doctors.create_doctor(
            admin, DoctorCreate(name="Desk", username="desk", password="x", role=StaffRole.RECEPTIONIST),
        )


async def test_deactivated_doctor_disappears(service, clinic, admin, doctor, patient):
    doctors = service(DoctorService)

    assert [d.id for d in await doctors.get_doctors(clinic.id)] == [doctor.id]
    await doctors.deactivate_doctor(admin, doctor.id)

    assert await doctors.get_doctors(clinic.id) == []
    assert [d.id for d in await doctors.get_doctors(clinic.id, include_inactive=True)] == [doctor.id]
    with pytest.raises(NotFoundError):
        await service(VisitService).create_visit(
            clinic.id, VisitCreate(patient_id=patient.id, doctor_id=doctor.id, visit_date=date(2024, 5, 2)),
        )


async def test_clinic_signup_creates_admin(service):
    clinics = service(ClinicService)

    created = await clinics.create_clinic(ClinicCreate(name="Green Valley Clinic", contact_email="gv@clinic.test"))

    assert created.clinic.slug.startswith("green-valley-clinic-")
    assert created.admin_credentials.username.startswith("greenvalle")
    assert (await clinics.get_clinic(created.tenant_id)).name == "Green Valley Clinic"


async def test_update_patient(service, clinic, other_clinic, patient):
    patients = service(PatientService)

    updated = await patients.update_patient(clinic.id, patient.id, PatientUpdate(phone="555-0999", allergies="Penicillin"))
    assert updated.phone == "555-0999"
    assert updated.allergies == "Penicillin"
    assert updated.name == "Maria Lopez"

    with pytest.raises(ValidationError):
        await patients.update_patient(clinic.id, patient.id, PatientUpdate(name=None))
    with pytest.raises(NotFoundError):
        await patients.update_patient(other_clinic.id, patient.id, PatientUpdate(notes="moved"))


async def test_patient_with_history_cannot_be_deleted(service, clinic, doctor, patient, second_patient):
    patients = service(PatientService)
    await service(VisitService).create_visit(
        clinic.id, VisitCreate(patient_id=patient.id, doctor_id=doctor.id, visit_date=date(2024, 5, 2)),
    )
    await service(QueueService).admit(clinic.id, QueueAdmit(patient_id=second_patient.id))

    with pytest.raises(ConflictError) as exc_info:
        await patients.delete_patient(clinic.id, patient.id)
    assert exc_info.value.details == {"visits": 1, "queue_items": 0}

    with pytest.raises(ConflictError) as exc_info:
        await patients.delete_patient(clinic.id, second_patient.id)
    assert exc_info.value.details == {"visits": 0, "queue_items": 1}

    assert (await patients.get_patient(clinic.id, patient.id)).id == patient.id


async def test_delete_patient(service, clinic, other_clinic, patient):
    patients = service(PatientService)

    assert await patients.delete_patient(other_clinic.id, patient.id) is False
    assert await patients.delete_patient(clinic.id, patient.id) is True
    assert await patients.delete_patient(clinic.id, patient.id) is False
    with pytest.raises(NotFoundError):
        await patients.get_patient(clinic.id, patient.id)


async def test_get_and_update_doctor(service, clinic, other_clinic, admin, doctor, other_doctor):
    doctors = service(DoctorService)

    assert (await doctors.get_doctor(clinic.id, doctor.id)).name == "Dr. Ada Moss"
    with pytest.raises(NotFoundError):
        await doctors.get_doctor(clinic.id, other_doctor.id)
    with pytest.raises(NotFoundError):
        await doctors.get_doctor(clinic.id, admin.id)

    updated = await doctors.update_doctor(
        admin, doctor.id, DoctorUpdate(cabinet_number="7", role=StaffRole.HEAD_DOCTOR, password="n3w-pass"),
    )
    assert updated.cabinet_number == "7"
    assert updated.role == "head_doctor"
    assert verify_password("n3w-pass", updated.password_hash)

    with pytest.raises(ValidationError):
        await doctors.update_doctor(admin, doctor.id, DoctorUpdate(role=StaffRole.RECEPTIONIST))
    with pytest.raises(ValidationError):
        await doctors.update_doctor(admin, doctor.id, DoctorUpdate(name=None))
    with pytest.raises(NotFoundError):
        await doctors.update_doctor(admin, other_doctor.id, DoctorUpdate(cabinet_number="1"))


async def test_deactivated_doctor_stays_readable(service, clinic, admin, doctor):
    doctors = service(DoctorService)
    await doctors.deactivate_doctor(admin, doctor.id)

    assert (await doctors.get_doctor(clinic.id, doctor.id)).is_active is False


async def test_doctors_cannot_update_colleagues(service, seed, clinic, doctor):
    colleague = await seed(User(tenant_id=clinic.id, role=StaffRole.DOCTOR.value, name="Dr. Noor", username="noor"))

    with pytest.raises(HTTPException) as exc_info:
        await service(DoctorService).update_doctor(doctor, colleague.id, DoctorUpdate(cabinet_number="9"))
    assert exc_info.value.status_code == 403


async def test_staff_accounts(service, seed, clinic, admin, doctor):
    staff = service(StaffService)
    head = await seed(User(tenant_id=clinic.id, role=StaffRole.HEAD_DOCTOR.value, name="Dr. Head", username="head"))

    desk = await staff.create_staff(admin, StaffCreate(name="Jo Park", username="jo", password="d3sk"))
    assert desk.role == "receptionist"
    assert desk.tenant_id == clinic.id
    assert verify_password("d3sk", desk.password_hash)

    clerk = await staff.create_staff(head, StaffCreate(name="Al Ray", username="al", password="x", role=StaffRole.USER))
    assert clerk.role == "user"

    with pytest.raises(HTTPException) as exc_info:
        await staff.create_staff(head, StaffCreate(name="Root", username="root", password="x", role=StaffRole.ADMIN))
    assert exc_info.value.status_code == 403
    with pytest.raises(HTTPException) as exc_info:
        await staff.create_staff(doctor, StaffCreate(name="Kit", username="kit", password="x"))
    assert exc_info.value.status_code == 403

    assert [u.username for u in await staff.get_staff(clinic.id)] == ["boss", "al", "ada", "head", "jo"]


async def test_username_taken_between_check_and_insert(service, monkeypatch, clinic, admin, doctor):
    async def not_taken(self, username):
        return False

    monkeypatch.setattr(StaffService, "_username_taken", not_taken)

    with pytest.raises(ValidationError) as exc_info:
        await service(StaffService).create_staff(admin, StaffCreate(name="Ada Two", username="ada", password="x"))
    assert exc_info.value.details == {"username": "must be unique"}
