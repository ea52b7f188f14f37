from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from careerguide.core.errors import database_error
from careerguide.database import get_db
from careerguide.models.counselor import Counselor
from careerguide.routes.auth_routes import CounselorResponse
from careerguide.services.directory import SPECIALIZATIONS

router = APIRouter(tags=['counselors'])


@router.get('')
def list_counselors(db: Session = Depends(get_db)):
    # Filtering by search text and specialty happens on the client.
    try:
        counselors = db.query(Counselor).order_by(Counselor.name.asc(), Counselor.id.asc()).all()
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc

    return {
        'success': True,
        'counselors': [CounselorResponse.from_counselor(counselor).model_dump() for counselor in counselors],
    }


@router.get('/specializations')
def list_specializations():
    return {'success': True, 'specializations': list(SPECIALIZATIONS)}


@router.get('/{counselor_id}')
def get_counselor(counselor_id: int, db: Session = Depends(get_db)):
    try:
        counselor = db.query(Counselor).filter(Counselor.id == counselor_id).first()
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc

    if counselor is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Counselor not found.')

    return {'success': True, 'counselor': CounselorResponse.from_counselor(counselor).model_dump()}
