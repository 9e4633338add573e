from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_clock, get_current_user, get_db, require_roles
from app.core.clock import Clock
from app.db.models.user import User
from app.domain.contract_state import ContractStatus
from app.schemas.contract import (
    Contract,
    ContractCreate,
    ContractDetail,
    ContractParty,
    ContractUpdate,
    ContractVersion,
    OtpIssued,
    OtpRequest,
    SignRequest,
)
from app.schemas.pagination import PaginatedResponse
from app.services.contract import (
    create_contract,
    delete_contract,
    get_contract_detail,
    get_contract_party,
    get_contract_version,
    list_contracts,
    send_contract,
    update_contract,
)
from app.services.signing import request_signing_otp, sign_contract

router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.post("", response_model=Contract, status_code=status.HTTP_201_CREATED)
def create_new_contract(
    contract_data: ContractCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_roles("landlord")),
):
    """
    Create a DRAFT contract. Only landlords can create contracts, for their own units.
    """
    contract = create_contract(
        db,
        landlord=current_user,
        unit_id=contract_data.unit_id,
        tenant_email=contract_data.tenant_email,
        start_date=contract_data.start_date,
        end_date=contract_data.end_date,
        deposit_amount=contract_data.deposit_amount,
        template_code=contract_data.template_code,
        content=contract_data.content,
        fee_detail=contract_data.fee_detail,
        now=clock.now(),
    )
    return Contract.model_validate(contract)


@router.get("", response_model=PaginatedResponse[Contract])
def get_all_contracts(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    status_filter: ContractStatus | None = Query(
        None, alias="status", description="Filter contracts by status"
    ),
    landlord_id: int | None = Query(None, description="Filter contracts by landlord user id"),
    tenant_id: int | None = Query(None, description="Filter contracts by tenant user id"),
    unit_id: int | None = Query(None, description="Filter contracts by unit id"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Get contracts with pagination.
    - Admin: all contracts
    - Landlord and Tenant: only contracts they are a party to
    """
    contracts, total = list_contracts(
        db,
        current_user,
        page=page,
        page_size=page_size,
        status=status_filter,
        landlord_id=landlord_id,
        tenant_id=tenant_id,
        unit_id=unit_id,
    )
    return PaginatedResponse(
        items=[Contract.model_validate(contract) for contract in contracts],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{contract_id}", response_model=ContractDetail)
def get_contract_by_id(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get a contract with its versions, parties and signatures."""
    contract = get_contract_detail(db, contract_id, current_user)
    return ContractDetail.from_model(contract)


@router.get("/{contract_id}/versions/{version_id}", response_model=ContractVersion)
def get_contract_version_by_id(
    contract_id: int,
    version_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get one version of a contract's text."""
    version = get_contract_version(db, contract_id, version_id, current_user)
    return ContractVersion.model_validate(version)


@router.get("/{contract_id}/parties/{party_id}", response_model=ContractParty)
def get_contract_party_by_id(
    contract_id: int,
    party_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get one party of a contract."""
    party = get_contract_party(db, contract_id, party_id, current_user)
    return ContractParty.model_validate(party)


@router.patch("/{contract_id}", response_model=Contract)
def update_contract_by_id(
    contract_id: int,
    contract_data: ContractUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_roles("landlord")),
):
    """
    Update a DRAFT contract. Fields not included in the request are not updated.
    """
    update_data = contract_data.model_dump(exclude_unset=True)
    contract = update_contract(
        db, contract_id=contract_id, current_user=current_user, now=clock.now(), **update_data
    )
    return Contract.model_validate(contract)


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contract_by_id(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("landlord")),
):
    """Delete a DRAFT contract. Sent contracts can only be terminated."""
    delete_contract(db, contract_id, current_user)


@router.post("/{contract_id}/send", response_model=ContractDetail)
def send_contract_by_id(
    contract_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_roles("landlord")),
):
    """Send a DRAFT contract to its parties for signing."""
    contract = send_contract(db, contract_id, current_user, clock.now())
    return ContractDetail.from_model(contract)


@router.post("/{contract_id}/otp", response_model=OtpIssued)
async def request_contract_otp(
    contract_id: int,
    otp_request: OtpRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(get_current_user),
):
    """Email a signing OTP to one of the contract parties."""
    party, otp, delivered = await request_signing_otp(
        db, contract_id, otp_request.party_id, current_user, clock.now()
    )
    return OtpIssued.for_party(party.id, otp.expires_at, delivered)


@router.post("/{contract_id}/sign", response_model=ContractDetail)
def sign_contract_by_id(
    contract_id: int,
    sign_request: SignRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(get_current_user),
):
    """Sign a SENT contract as one party, using the OTP sent to that party."""
    contract = sign_contract(
        db,
        contract_id,
        party_id=sign_request.party_id,
        otp=sign_request.otp,
        role=sign_request.role.value,
        current_user=current_user,
        now=clock.now(),
    )
    return ContractDetail.from_model(contract)
