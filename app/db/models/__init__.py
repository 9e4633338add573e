from app.db.models.role import Role
from app.db.models.user import User
from app.db.models.unit import Unit
from app.db.models.contract import Contract, ContractParty, ContractSignature, ContractVersion
from app.db.models.termination import TerminationRequest, TerminationConsent
from app.db.models.otp import ContractOtp
from app.db.models.extension import ExtensionRequest
from app.db.models.invoice import Invoice, InvoiceItem

__all__ = [
    "Role",
    "User",
    "Unit",
    "Contract",
    "ContractParty",
    "ContractSignature",
    "ContractVersion",
    "TerminationRequest",
    "TerminationConsent",
    "ContractOtp",
    "ExtensionRequest",
    "Invoice",
    "InvoiceItem",
]
