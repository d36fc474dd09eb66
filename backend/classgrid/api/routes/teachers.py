from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from classgrid.api.deps import get_db
from classgrid.models.teacher import Teacher
from classgrid.schemas.teacher import TeacherCreate, TeacherOut
from classgrid.services.audit import log_activity

router = APIRouter()


@router.get("/teachers", response_model=list[TeacherOut])
def list_teachers(
    subject: str | None = Query(default=None, max_length=200),
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[TeacherOut]:
    query = select(Teacher).order_by(Teacher.id.asc())
    if not include_inactive:
        query = query.where(Teacher.is_active.is_(True))
    teachers = list(db.execute(query).scalars())
    if subject:
        wanted = subject.strip()
        teachers = [teacher for teacher in teachers if wanted in (teacher.subjects or [])]
    return teachers


@router.post("/teachers", response_model=TeacherOut, status_code=status.HTTP_201_CREATED)
def create_teacher(payload: TeacherCreate, db: Session = Depends(get_db)) -> TeacherOut:
    existing = db.execute(
        select(Teacher.id).where(func.lower(Teacher.name) == payload.name.lower())
    ).first()
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A teacher named {payload.name} already exists",
        )
    teacher = Teacher(
        name=payload.name,
        email=str(payload.email) if payload.email else None,
        subjects=payload.subjects,
        is_active=True,
    )
    db.add(teacher)
    db.flush()
    log_activity(
        db,
        actor=None,
        action="teacher.create",
        entity_type="teacher",
        entity_id=str(teacher.id),
        details={"subjects": payload.subjects},
    )
    db.commit()
    db.refresh(teacher)
    return teacher
