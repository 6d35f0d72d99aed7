"""
GET /case-types: static catalogue used by the frontend to render case types.
"""
from fastapi import APIRouter, Depends

from legalms.core.security import get_current_user
from legalms.schemas.case import CaseTypeInfo

router = APIRouter(prefix="/case-types", tags=["case-types"])

CASE_TYPES: list[CaseTypeInfo] = [
    CaseTypeInfo(type="Civil", name="Civil", description="Civil law cases", icon="gavel", color="#667eea"),
    CaseTypeInfo(type="Criminal", name="Criminal", description="Criminal law cases", icon="security", color="#dc3545"),
    CaseTypeInfo(type="Corporate", name="Corporate", description="Corporate law cases", icon="business", color="#28a745"),
    CaseTypeInfo(type="Family", name="Family", description="Family law cases", icon="family_restroom", color="#ffc107"),
    CaseTypeInfo(type="Property", name="Property", description="Property law cases", icon="home", color="#17a2b8"),
    CaseTypeInfo(type="Labor", name="Labor", description="Labor law cases", icon="work", color="#6f42c1"),
    CaseTypeInfo(type="Tax", name="Tax", description="Tax law cases", icon="receipt", color="#fd7e14"),
    CaseTypeInfo(
        type="PersonalInjury", name="Personal Injury", description="Personal injury cases", icon="healing", color="#e83e8c"
    ),
    CaseTypeInfo(type="Immigration", name="Immigration", description="Immigration law cases", icon="flight", color="#20c997"),
    CaseTypeInfo(
        type="Bankruptcy", name="Bankruptcy", description="Bankruptcy cases", icon="account_balance_wallet", color="#6c757d"
    ),
    CaseTypeInfo(
        type="ChequeDefault", name="Cheque Default", description="Cheque default cases", icon="payment", color="#dc3545"
    ),
    CaseTypeInfo(type="Other", name="Other", description="Other types of cases", icon="more_horiz", color="#adb5bd"),
]


@router.get("", response_model=list[CaseTypeInfo])
async def list_case_types(_user=Depends(get_current_user)) -> list[CaseTypeInfo]:
    return CASE_TYPES
