from fastapi import APIRouter
from app.api.v1 import auth, clinics, clinical_notes, doctors, patients, queue, staff, visits

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(clinics.router, prefix="/clinics", tags=["clinics"])
api_router.include_router(doctors.router, prefix="/doctors", tags=["doctors"])
api_router.include_router(staff.router, prefix="/staff", tags=["staff"])
api_router.include_router(patients.router, prefix="/patients", tags=["patients"])
api_router.include_router(visits.router, prefix="/visits", tags=["visits"])
api_router.include_router(clinical_notes.router, prefix="/clinical-notes", tags=["clinical-notes"])
api_router.include_router(queue.router, prefix="/queue", tags=["queue"])
